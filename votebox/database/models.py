# votebox/database/models.py

from datetime import datetime, timezone
from enum import Enum

from votebox.authentication.rbac import Role
from votebox.database import db


def utcnow():
    # naive UTC; SQLite drops tzinfo so every stored timestamp is naive
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _isoformat(value):
    return value.isoformat() + "Z" if value else None


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class ElectionStatus(Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = (ElectionStatus.COMPLETED, ElectionStatus.CANCELLED)


class Voter(db.Model):
    __tablename__ = 'voters'
    id = db.Column(db.Integer, primary_key=True)
    national_id = db.Column(db.String(12), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    age = db.Column(db.Integer, nullable=False)
    email = db.Column(db.String(254), nullable=True)
    mobile = db.Column(db.String(20), nullable=True)
    address = db.Column(db.String(255), nullable=False)
    role = db.Column(
        db.Enum(Role, name='voter_role', values_callable=_enum_values),
        nullable=False,
        default=Role.VOTER,
    )
    password_hash = db.Column(db.String(200), nullable=False)  # argon2id, never serialized
    has_voted = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    __table_args__ = (
        db.CheckConstraint('age >= 18', name='ck_voters_adult'),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "age": self.age,
            "email": self.email,
            "mobile": self.mobile,
            "address": self.address,
            "aadharCardNumber": self.national_id,
            "role": self.role.value,
            "hasVoted": self.has_voted,
        }

    def __repr__(self):
        return f'<Voter {self.id} ({self.role.value})>'


class Candidate(db.Model):
    __tablename__ = 'candidates'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    party = db.Column(db.String(100), nullable=False)
    age = db.Column(db.Integer, nullable=False)
    vote_count = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=utcnow)

    __table_args__ = (
        db.CheckConstraint('age >= 18', name='ck_candidates_adult'),
        db.CheckConstraint('vote_count >= 0', name='ck_candidates_vote_count'),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "party": self.party,
            "age": self.age,
            "voteCount": self.vote_count,
        }

    def __repr__(self):
        return f'<Candidate {self.id} {self.name}>'


class ElectionCandidate(db.Model):
    """Membership of a candidate in an election; ``id`` keeps insertion order."""
    __tablename__ = 'election_candidates'
    id = db.Column(db.Integer, primary_key=True)
    election_id = db.Column(db.Integer, db.ForeignKey('elections.id', ondelete='CASCADE'), nullable=False)
    candidate_id = db.Column(db.Integer, db.ForeignKey('candidates.id', ondelete='CASCADE'), nullable=False)

    candidate = db.relationship('Candidate', lazy='joined')

    __table_args__ = (
        db.UniqueConstraint('election_id', 'candidate_id', name='uq_election_candidate'),
    )


class Election(db.Model):
    __tablename__ = 'elections'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    status = db.Column(
        db.Enum(ElectionStatus, name='election_status', values_callable=_enum_values),
        nullable=False,
        default=ElectionStatus.DRAFT,
    )
    total_votes = db.Column(db.Integer, nullable=False, default=0)
    created_by = db.Column(db.Integer, db.ForeignKey('voters.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    entries = db.relationship(
        'ElectionCandidate',
        order_by='ElectionCandidate.id',
        cascade='all, delete-orphan',
        lazy='selectin',
    )
    creator = db.relationship('Voter')

    __table_args__ = (
        db.CheckConstraint('end_date > start_date', name='ck_elections_window'),
    )

    @property
    def candidate_ids(self):
        return [entry.candidate_id for entry in self.entries]

    @property
    def candidates(self):
        return [entry.candidate for entry in self.entries]

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    def is_active(self, now=None):
        now = now or utcnow()
        return self.status == ElectionStatus.ACTIVE and self.start_date <= now <= self.end_date

    def can_start(self, now=None):
        now = now or utcnow()
        return (
            self.status == ElectionStatus.DRAFT
            and self.start_date <= now
            and self.end_date > now
            and len(self.entries) > 0
        )

    def to_dict(self, include_candidates=True):
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "startDate": _isoformat(self.start_date),
            "endDate": _isoformat(self.end_date),
            "status": self.status.value,
            "totalVotes": self.total_votes,
            "createdBy": {"id": self.creator.id, "name": self.creator.name} if self.creator else None,
            "createdAt": _isoformat(self.created_at),
            "updatedAt": _isoformat(self.updated_at),
        }
        if include_candidates:
            data["candidates"] = [candidate.to_dict() for candidate in self.candidates]
        return data

    def __repr__(self):
        return f'<Election {self.id} {self.status.value}>'
