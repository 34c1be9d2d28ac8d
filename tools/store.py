"""
Therapy Data Store
------------------
The data the therapy tools read and write, behind a small protocol.

Persistence is not this package's concern: any backend that implements
TherapyStore can sit behind the tools. InMemoryTherapyStore is the
implementation used for tests, demos and local runs.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Protocol
import uuid


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Child:
    id: str
    name: str
    family_id: str
    birth_date: Optional[date] = None
    created_at: datetime = field(default_factory=_now)


@dataclass
class Caregiver:
    id: str
    family_id: str
    email: str
    name: str = ""


@dataclass
class Therapist:
    id: str
    email: str
    name: str = ""


@dataclass
class TherapistAssignment:
    therapist_id: str
    child_id: str
    granted_at: datetime = field(default_factory=_now)


@dataclass
class TherapySession:
    id: str
    child_id: str
    type: str  # ABA | OT | SLP | other
    date: date
    therapist_id: Optional[str] = None
    duration_minutes: Optional[int] = None
    notes: Optional[str] = None
    goals_worked_on: List[Dict[str, Any]] = field(default_factory=list)  # {goalId, progress?, notes?}
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass
class Goal:
    id: str
    child_id: str
    type: str  # ABA | OT | SLP | communication | other
    title: str
    description: Optional[str] = None
    target_date: Optional[date] = None
    criteria: Optional[str] = None
    status: str = "active"  # active | completed | paused
    progress: int = 0
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass
class Note:
    id: str
    child_id: str
    author_id: str
    type: str  # observation | milestone | concern | general
    content: str
    created_at: datetime = field(default_factory=_now)


@dataclass
class VocabularyEntry:
    child_id: str
    symbol_id: str
    label: str
    category: str = ""
    usage_count: int = 0


@dataclass
class UsageLog:
    """One symbol selection on the child's AAC device."""
    child_id: str
    symbol_id: str
    timestamp: datetime


@dataclass
class CustomSymbol:
    id: str
    child_id: str
    name: str
    category_id: str
    image_source: str  # generate | url
    name_bulgarian: Optional[str] = None
    image_url: Optional[str] = None
    image_prompt: Optional[str] = None
    status: str = "pending"  # pending | approved | rejected
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


class TherapyStore(Protocol):
    """Everything the tool catalog needs from a data backend."""

    async def get_child(self, child_id: str) -> Optional[Child]: ...

    async def find_caregiver(self, family_id: str, user_id: str) -> Optional[Caregiver]: ...

    async def find_therapist(self, user_id: str) -> Optional[Therapist]: ...

    async def is_assigned(self, therapist_id: str, child_id: str) -> bool: ...

    async def children_for_user(self, user_id: str) -> List[Child]: ...

    async def children_in_family(self, family_id: str) -> List[Child]: ...

    async def therapists_for_child(self, child_id: str) -> List[Therapist]: ...

    async def list_sessions(self, child_ids: List[str], session_type: Optional[str] = None) -> List[TherapySession]: ...

    async def get_session(self, session_id: str) -> Optional[TherapySession]: ...

    async def save_session(self, session: TherapySession) -> TherapySession: ...

    async def list_goals(self, child_id: str, status: Optional[str] = None) -> List[Goal]: ...

    async def get_goal(self, goal_id: str) -> Optional[Goal]: ...

    async def save_goal(self, goal: Goal) -> Goal: ...

    async def add_note(self, note: Note) -> Note: ...

    async def vocabulary(self, child_id: str) -> List[VocabularyEntry]: ...

    async def usage_logs(self, child_id: str, start: date, end: date) -> List[UsageLog]: ...

    async def save_custom_symbol(self, symbol: CustomSymbol) -> CustomSymbol: ...


class InMemoryTherapyStore:
    """Dict-backed TherapyStore. Records are copied in and out."""

    def __init__(self):
        self.children: Dict[str, Child] = {}
        self.caregivers: List[Caregiver] = []
        self.therapists: Dict[str, Therapist] = {}
        self.assignments: List[TherapistAssignment] = []
        self.sessions: Dict[str, TherapySession] = {}
        self.goals: Dict[str, Goal] = {}
        self.notes: Dict[str, Note] = {}
        self.vocabulary_entries: List[VocabularyEntry] = []
        self.usage: List[UsageLog] = []
        self.custom_symbols: Dict[str, CustomSymbol] = {}

    # Seeding helpers (synchronous; used before traffic starts)

    def add_child(self, name: str, family_id: str, child_id: Optional[str] = None, **kwargs) -> Child:
        child = Child(id=child_id or str(uuid.uuid4()), name=name, family_id=family_id, **kwargs)
        self.children[child.id] = child
        return child

    def add_caregiver(self, family_id: str, email: str, name: str = "") -> Caregiver:
        caregiver = Caregiver(id=str(uuid.uuid4()), family_id=family_id, email=email, name=name)
        self.caregivers.append(caregiver)
        return caregiver

    def add_therapist(self, email: str, name: str = "") -> Therapist:
        therapist = Therapist(id=str(uuid.uuid4()), email=email, name=name)
        self.therapists[therapist.id] = therapist
        return therapist

    def assign(self, therapist_id: str, child_id: str) -> TherapistAssignment:
        assignment = TherapistAssignment(therapist_id=therapist_id, child_id=child_id)
        self.assignments.append(assignment)
        return assignment

    def add_session(self, child_id: str, session_type: str, on: date, **kwargs) -> TherapySession:
        session = TherapySession(id=str(uuid.uuid4()), child_id=child_id, type=session_type, date=on, **kwargs)
        self.sessions[session.id] = session
        return session

    def add_vocabulary(self, child_id: str, label: str, category: str = "", usage_count: int = 0) -> VocabularyEntry:
        entry = VocabularyEntry(
            child_id=child_id,
            symbol_id=str(uuid.uuid4()),
            label=label,
            category=category,
            usage_count=usage_count,
        )
        self.vocabulary_entries.append(entry)
        return entry

    def log_usage(self, child_id: str, symbol_id: str, at: datetime) -> UsageLog:
        entry = UsageLog(child_id=child_id, symbol_id=symbol_id, timestamp=at)
        self.usage.append(entry)
        return entry

    # TherapyStore

    async def get_child(self, child_id: str) -> Optional[Child]:
        child = self.children.get(child_id)
        return replace(child) if child else None

    async def find_caregiver(self, family_id: str, user_id: str) -> Optional[Caregiver]:
        for caregiver in self.caregivers:
            if caregiver.family_id == family_id and user_id in (caregiver.email, caregiver.id):
                return replace(caregiver)
        return None

    async def find_therapist(self, user_id: str) -> Optional[Therapist]:
        for therapist in self.therapists.values():
            if user_id in (therapist.email, therapist.id):
                return replace(therapist)
        return None

    async def is_assigned(self, therapist_id: str, child_id: str) -> bool:
        return any(
            a.therapist_id == therapist_id and a.child_id == child_id
            for a in self.assignments
        )

    async def children_for_user(self, user_id: str) -> List[Child]:
        family_ids = {c.family_id for c in self.caregivers if user_id in (c.email, c.id)}
        therapist = await self.find_therapist(user_id)
        assigned = set()
        if therapist:
            assigned = {a.child_id for a in self.assignments if a.therapist_id == therapist.id}

        return [
            replace(child)
            for child in self.children.values()
            if child.family_id in family_ids or child.id in assigned
        ]

    async def children_in_family(self, family_id: str) -> List[Child]:
        return [replace(c) for c in self.children.values() if c.family_id == family_id]

    async def therapists_for_child(self, child_id: str) -> List[Therapist]:
        ids = [a.therapist_id for a in self.assignments if a.child_id == child_id]
        return [replace(self.therapists[i]) for i in ids if i in self.therapists]

    async def list_sessions(self, child_ids: List[str], session_type: Optional[str] = None) -> List[TherapySession]:
        sessions = [
            _copy_session(s)
            for s in self.sessions.values()
            if s.child_id in child_ids and (session_type is None or s.type == session_type)
        ]
        return sorted(sessions, key=lambda s: s.date, reverse=True)

    async def get_session(self, session_id: str) -> Optional[TherapySession]:
        session = self.sessions.get(session_id)
        return _copy_session(session) if session else None

    async def save_session(self, session: TherapySession) -> TherapySession:
        self.sessions[session.id] = _copy_session(session)
        return _copy_session(session)

    async def list_goals(self, child_id: str, status: Optional[str] = None) -> List[Goal]:
        return [
            replace(g)
            for g in self.goals.values()
            if g.child_id == child_id and (status is None or g.status == status)
        ]

    async def get_goal(self, goal_id: str) -> Optional[Goal]:
        goal = self.goals.get(goal_id)
        return replace(goal) if goal else None

    async def save_goal(self, goal: Goal) -> Goal:
        self.goals[goal.id] = replace(goal)
        return replace(goal)

    async def add_note(self, note: Note) -> Note:
        self.notes[note.id] = replace(note)
        return replace(note)

    async def vocabulary(self, child_id: str) -> List[VocabularyEntry]:
        return [replace(v) for v in self.vocabulary_entries if v.child_id == child_id]

    async def usage_logs(self, child_id: str, start: date, end: date) -> List[UsageLog]:
        """Selections between `start` and `end`, both days inclusive."""
        return [
            replace(u)
            for u in self.usage
            if u.child_id == child_id and start <= u.timestamp.date() <= end
        ]

    async def save_custom_symbol(self, symbol: CustomSymbol) -> CustomSymbol:
        self.custom_symbols[symbol.id] = replace(symbol)
        return replace(symbol)


def _copy_session(session: TherapySession) -> TherapySession:
    return replace(session, goals_worked_on=[dict(g) for g in session.goals_worked_on])
