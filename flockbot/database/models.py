from sqlalchemy import (
    Column, Integer, String, DateTime, Boolean, Text, Float, BigInteger,
    ForeignKey, UniqueConstraint, CheckConstraint, Index
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

from flockbot.data_models.schedule import BattleWindow
from flockbot.utils.official_time import from_utc_naive

Base = declarative_base()


class Clan(Base):
    __tablename__ = 'clans'

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True)
    country = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True)

    # Metadata
    created_at = Column(DateTime, default=func.now())

    # Relationships
    roster = relationship("RosterMember", back_populates="clan", cascade="all, delete-orphan")
    battles = relationship("ClanBattle", back_populates="clan", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Clan(id={self.id}, name='{self.name}')>"


class RosterMember(Base):
    __tablename__ = 'roster_members'

    id = Column(Integer, primary_key=True)
    clan_id = Column(Integer, ForeignKey('clans.id'), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=func.now())

    clan = relationship("Clan", back_populates="roster")

    __table_args__ = (UniqueConstraint('clan_id', 'name'),)

    def __repr__(self):
        return f"<RosterMember(id={self.id}, name='{self.name}', clan_id={self.clan_id})>"


class MasterBattle(Base):
    """One scheduled battle window shared by every clan. Timestamps are naive UTC."""
    __tablename__ = 'master_battles'

    battle_id = Column(String(8), primary_key=True)
    start_timestamp = Column(DateTime, nullable=False, index=True)
    end_timestamp = Column(DateTime, nullable=False)
    created_by = Column(BigInteger, nullable=True)  # NULL = created by the scheduler
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=func.now())

    clan_battles = relationship("ClanBattle", back_populates="master_battle")

    __table_args__ = (
        CheckConstraint('end_timestamp > start_timestamp', name='ck_master_battle_window'),
    )

    @property
    def start_instant(self):
        return from_utc_naive(self.start_timestamp)

    @property
    def end_instant(self):
        return from_utc_naive(self.end_timestamp)

    def to_window(self) -> BattleWindow:
        return BattleWindow(
            battle_id=self.battle_id,
            start_instant=self.start_instant,
            end_instant=self.end_instant,
            created_by=self.created_by,
            notes=self.notes,
        )

    def __repr__(self):
        return f"<MasterBattle(battle_id='{self.battle_id}', created_by={self.created_by})>"


class ClanBattle(Base):
    """A clan's result for one master battle: raw inputs plus derived statistics."""
    __tablename__ = 'clan_battles'

    id = Column(Integer, primary_key=True)
    clan_id = Column(Integer, ForeignKey('clans.id'), nullable=False, index=True)
    battle_id = Column(String(8), ForeignKey('master_battles.battle_id'), nullable=False, index=True)

    # Denormalized from the master battle for range queries
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)

    # Raw inputs
    score = Column(Integer, nullable=False)
    baseline_fp = Column(Integer, nullable=False)
    opponent_name = Column(String(100), nullable=True)
    opponent_country = Column(String(100), nullable=True)
    opponent_score = Column(Integer, nullable=False)
    opponent_fp = Column(Integer, nullable=False)

    # Derived at record/update time
    result = Column(Integer, nullable=False)  # 1 win, -1 loss, 0 tie
    fp = Column(Integer, nullable=False)
    ratio = Column(Float, nullable=False)
    average_ratio = Column(Float, nullable=False)
    projected_score = Column(Float, nullable=False)
    margin_ratio = Column(Float, nullable=False)
    fp_margin = Column(Float, nullable=False)
    nonplaying_count = Column(Integer, nullable=False, default=0)
    nonplaying_fp_ratio = Column(Float, nullable=False, default=0.0)
    reserve_count = Column(Integer, nullable=False, default=0)
    reserve_fp_ratio = Column(Float, nullable=False, default=0.0)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # Relationships
    clan = relationship("Clan", back_populates="battles")
    master_battle = relationship("MasterBattle", back_populates="clan_battles")
    player_stats = relationship(
        "ClanBattlePlayerStats", back_populates="clan_battle",
        cascade="all, delete-orphan", order_by="ClanBattlePlayerStats.id"
    )
    nonplayer_stats = relationship(
        "ClanBattleNonplayerStats", back_populates="clan_battle",
        cascade="all, delete-orphan", order_by="ClanBattleNonplayerStats.id"
    )

    __table_args__ = (
        UniqueConstraint('clan_id', 'battle_id', name='uq_clan_battle'),
        CheckConstraint('result IN (-1, 0, 1)', name='ck_clan_battle_result'),
        Index('idx_clan_battle_start', 'clan_id', 'start_date'),
    )

    @property
    def player_count(self) -> int:
        """Requires player_stats to be loaded."""
        return len(self.player_stats)

    def __repr__(self):
        return f"<ClanBattle(clan_id={self.clan_id}, battle_id='{self.battle_id}', result={self.result})>"


class ClanBattlePlayerStats(Base):
    __tablename__ = 'clan_battle_player_stats'

    id = Column(Integer, primary_key=True)
    clan_battle_id = Column(Integer, ForeignKey('clan_battles.id', ondelete='CASCADE'), nullable=False, index=True)
    player_id = Column(Integer, ForeignKey('roster_members.id'), nullable=False, index=True)

    rank = Column(Integer, nullable=False)
    score = Column(Integer, nullable=False)
    fp = Column(Integer, nullable=False)
    ratio = Column(Float, nullable=False)
    ratio_rank = Column(Integer, nullable=False)

    clan_battle = relationship("ClanBattle", back_populates="player_stats")
    player = relationship("RosterMember")

    __table_args__ = (UniqueConstraint('clan_battle_id', 'player_id'),)

    def __repr__(self):
        return f"<ClanBattlePlayerStats(player_id={self.player_id}, ratio={self.ratio}, ratio_rank={self.ratio_rank})>"


class ClanBattleNonplayerStats(Base):
    __tablename__ = 'clan_battle_nonplayer_stats'

    id = Column(Integer, primary_key=True)
    clan_battle_id = Column(Integer, ForeignKey('clan_battles.id', ondelete='CASCADE'), nullable=False, index=True)
    player_id = Column(Integer, ForeignKey('roster_members.id'), nullable=False)

    fp = Column(Integer, nullable=False)
    reserve = Column(Boolean, nullable=False, default=False)

    clan_battle = relationship("ClanBattle", back_populates="nonplayer_stats")
    player = relationship("RosterMember")

    __table_args__ = (UniqueConstraint('clan_battle_id', 'player_id'),)

    def __repr__(self):
        return f"<ClanBattleNonplayerStats(player_id={self.player_id}, reserve={self.reserve})>"


class SystemSetting(Base):
    """Key/value settings. Values are JSON-encoded."""
    __tablename__ = 'system_settings'

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<SystemSetting(key='{self.key}', value={self.value})>"


class AuditLog(Base):
    __tablename__ = 'audit_logs'

    id = Column(Integer, primary_key=True)
    user_id = Column(BigInteger, nullable=True)  # NULL = system action
    action = Column(String(50), nullable=False)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now())

    def __repr__(self):
        return f"<AuditLog(action='{self.action}', user_id={self.user_id})>"
