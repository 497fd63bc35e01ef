# app/infrastructure/models.py
"""
SQLAlchemy ORM models for participants and weekly groups.
"""
from sqlalchemy import (
    Column, Integer, String, Date, DateTime, Boolean, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship
from datetime import datetime
from app.infrastructure.db.session import Base

GROUP_ACTIVE = "Active"
GROUP_COMPLETED = "Completed"
GROUP_CANCELLED = "Cancelled"
GROUP_STATUSES = (GROUP_ACTIVE, GROUP_COMPLETED, GROUP_CANCELLED)


def now():
    return datetime.utcnow()


class Participant(Base):
    __tablename__ = "participants"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    telegram_id = Column(String(64), nullable=True, index=True)
    region = Column(String(20), nullable=False)  # "North" | "Center" | "South"
    birth_date = Column(Date, nullable=True)
    age = Column(Integer, default=0)
    status = Column(String(20), default="Lead", index=True)  # "Lead" | "Active" | "Inactive"
    on_pause = Column(Boolean, default=False)
    created_at = Column(DateTime, default=now)

    # Relationships
    group_memberships = relationship("GroupMember", back_populates="participant")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "telegram_id": self.telegram_id,
            "region": self.region,
            "birth_date": self.birth_date,
            "age": self.age,
            "status": self.status,
            "on_pause": self.on_pause,
            "created_at": self.created_at,
        }


class Group(Base):
    __tablename__ = "groups"

    id = Column(Integer, primary_key=True)
    created_at = Column(DateTime, default=now, index=True)
    status = Column(String(20), default=GROUP_ACTIVE, index=True)
    region = Column(String(20), nullable=True)  # None when members come from several regions
    stage = Column(String(4), nullable=True)

    # Relationships
    members = relationship("GroupMember", back_populates="group", lazy="selectin")

    def to_dict(self):
        return {
            "id": self.id,
            "created_at": self.created_at,
            "status": self.status,
            "region": self.region,
            "stage": self.stage,
            "participant_ids": [m.participant_id for m in self.members],
        }


class GroupMember(Base):
    __tablename__ = "group_members"

    id = Column(Integer, primary_key=True)
    group_id = Column(Integer, ForeignKey("groups.id"), index=True)
    participant_id = Column(Integer, ForeignKey("participants.id"), index=True)

    __table_args__ = (
        UniqueConstraint("group_id", "participant_id", name="uq_group_participant"),
    )

    # Relationships
    group = relationship("Group", back_populates="members")
    participant = relationship("Participant", back_populates="group_memberships")
