"""
Therapy Tool Catalog
--------------------
The default tools the assistant can call, bound to a TherapyStore.

Read tools return data and never change state. Write tools change
state and return a confirmation message alongside the record; the model
should confirm details with the user before calling them.

Every tool checks access itself (see tools.authorization); the
dispatcher does not.
"""

from collections import Counter
from datetime import date, datetime, timedelta, timezone
from functools import partial
from typing import Annotated, Any, Dict, List, Literal, Optional
import uuid

from pydantic import AnyUrl, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .authorization import accessible_child_ids, has_child_access, verify_child_access
from .errors import GoalNotFoundError, SessionNotFoundError, UnauthorizedError, UserIdRequiredError
from .registry import ToolContext, ToolRegistry, ToolResult, create_read_only_tool, create_tool
from .store import Child, CustomSymbol, Goal, Note, TherapySession, TherapyStore, UsageLog

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
MAX_SEARCH_RESULTS = 50
MAX_SESSION_MINUTES = 480
MAX_GOALS_PER_SESSION = 20
PERIOD_DAYS = {"week": 7, "month": 30, "quarter": 90, "year": 365}

SessionType = Literal["ABA", "OT", "SLP", "other"]
GoalType = Literal["ABA", "OT", "SLP", "communication", "other"]
GoalStatus = Literal["active", "completed", "paused"]
NoteType = Literal["observation", "milestone", "concern", "general"]
Period = Literal["week", "month", "quarter", "year"]

DateString = Annotated[str, Field(pattern=DATE_PATTERN, description="Date in YYYY-MM-DD format")]


class ToolInput(BaseModel):
    """Tool inputs use camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# =============================================================================
# Inputs
# =============================================================================

class GetChildInput(ToolInput):
    child_id: uuid.UUID = Field(description="The child's ID")


class ListChildrenInput(ToolInput):
    pass


class ListSessionsInput(ToolInput):
    child_id: Optional[uuid.UUID] = Field(default=None, description="Only sessions for this child")
    type: Optional[SessionType] = None
    start_date: Optional[DateString] = None
    end_date: Optional[DateString] = None
    limit: int = Field(default=20, ge=1, le=100)


class ListGoalsInput(ToolInput):
    child_id: uuid.UUID
    status: Literal["active", "completed", "paused", "all"] = "all"


class SearchVocabularyInput(ToolInput):
    child_id: uuid.UUID
    query: str = Field(min_length=1, max_length=100, description="Symbol name, category or keyword")


class CreateGoalInput(ToolInput):
    child_id: uuid.UUID
    type: GoalType
    title: str = Field(min_length=3, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    target_date: Optional[DateString] = None
    criteria: Optional[str] = Field(default=None, max_length=2000)


class AddNoteInput(ToolInput):
    child_id: uuid.UUID
    content: str = Field(min_length=1, max_length=5000)
    type: NoteType = "general"


class UpdateGoalInput(ToolInput):
    goal_id: uuid.UUID
    status: Optional[GoalStatus] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100, description="Progress percentage")
    notes: Optional[str] = Field(default=None, max_length=2000)


class GetSessionInput(ToolInput):
    session_id: uuid.UUID


class GetProgressSummaryInput(ToolInput):
    child_id: uuid.UUID
    period: Period


class GoalWorkedOn(ToolInput):
    goal_id: uuid.UUID
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    notes: Optional[str] = Field(default=None, max_length=1000)


class CreateSessionInput(ToolInput):
    child_id: uuid.UUID
    type: SessionType
    session_date: DateString = Field(alias="date")
    duration_minutes: Optional[int] = Field(default=None, ge=1, le=MAX_SESSION_MINUTES)
    notes: Optional[str] = Field(default=None, max_length=10000)
    goals_worked_on: Optional[List[GoalWorkedOn]] = Field(default=None, max_length=MAX_GOALS_PER_SESSION)
    therapist_id: Optional[uuid.UUID] = None


class UpdateSessionInput(ToolInput):
    session_id: uuid.UUID
    notes: Optional[str] = Field(default=None, max_length=10000)
    duration: Optional[int] = Field(default=None, ge=1, le=MAX_SESSION_MINUTES, description="Minutes")
    goals_addressed: Optional[List[uuid.UUID]] = Field(default=None, max_length=MAX_GOALS_PER_SESSION)


class CreateCustomSymbolInput(ToolInput):
    child_id: uuid.UUID
    name: str = Field(min_length=1, max_length=100)
    name_bulgarian: Optional[str] = Field(default=None, max_length=100)
    category_id: uuid.UUID
    image_source: Literal["generate", "url"]
    image_prompt: Optional[str] = Field(default=None, min_length=10, max_length=500)
    image_url: Optional[AnyUrl] = None

    @model_validator(mode="after")
    def check_image_source(self) -> "CreateCustomSymbolInput":
        if self.image_source == "generate" and not self.image_prompt:
            raise ValueError("Image prompt is required when imageSource is 'generate'")
        if self.image_source == "url" and not self.image_url:
            raise ValueError("Image URL is required when imageSource is 'url'")
        return self


# =============================================================================
# Helpers
# =============================================================================

def age_in_months(birth_date: Optional[date], today: Optional[date] = None) -> Optional[int]:
    if birth_date is None:
        return None
    today = today or date.today()
    return int((today - birth_date).days // 30.44)


def _iso(value: Any) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _add_years(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        # Feb 29 -> Feb 28
        return day.replace(year=day.year + years, day=28)


def _parse_date(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _child_summary(child: Child) -> Dict[str, Any]:
    return {
        "id": child.id,
        "name": child.name,
        "birthDate": _iso(child.birth_date),
        "ageInMonths": age_in_months(child.birth_date),
        "familyId": child.family_id,
    }


def _goal_dict(goal: Goal) -> Dict[str, Any]:
    return {
        "id": goal.id,
        "childId": goal.child_id,
        "type": goal.type,
        "title": goal.title,
        "description": goal.description,
        "targetDate": _iso(goal.target_date),
        "criteria": goal.criteria,
        "status": goal.status,
        "progress": goal.progress,
        "createdAt": _iso(goal.created_at),
        "updatedAt": _iso(goal.updated_at),
    }


def _session_dict(session: TherapySession) -> Dict[str, Any]:
    return {
        "id": session.id,
        "childId": session.child_id,
        "type": session.type,
        "date": session.date.isoformat(),
        "durationMinutes": session.duration_minutes,
        "therapistId": session.therapist_id,
        "notes": session.notes,
        "goalsWorkedOn": session.goals_worked_on,
        "createdAt": _iso(session.created_at),
        "updatedAt": _iso(session.updated_at),
    }


async def _foreign_goals(store: TherapyStore, child_id: str, goal_ids: List[str]) -> List[str]:
    """Ids that do not name a goal of this child."""
    missing = []
    for goal_id in goal_ids:
        goal = await store.get_goal(goal_id)
        if goal is None or goal.child_id != child_id:
            missing.append(goal_id)
    return missing


async def _accessible_session(store: TherapyStore, session_id: str, context: ToolContext) -> TherapySession:
    if not context.user_id:
        raise UserIdRequiredError()

    session = await store.get_session(session_id)
    if session is None:
        raise SessionNotFoundError(session_id)
    if not await has_child_access(store, session.child_id, context):
        raise UnauthorizedError("You don't have access to this session")
    return session


# =============================================================================
# Read tools
# =============================================================================

async def get_child(store: TherapyStore, data: GetChildInput, context: ToolContext) -> Dict[str, Any]:
    child = await verify_child_access(store, str(data.child_id), context)

    therapists = await store.therapists_for_child(child.id)
    active_goals = await store.list_goals(child.id, "active")
    vocabulary = await store.vocabulary(child.id)

    return {
        **_child_summary(child),
        "createdAt": _iso(child.created_at),
        "therapists": [{"id": t.id, "name": t.name, "email": t.email} for t in therapists],
        "activeGoalsCount": len(active_goals),
        "totalSymbolsUsed": sum(1 for v in vocabulary if v.usage_count > 0),
    }


async def list_children(store: TherapyStore, data: ListChildrenInput, context: ToolContext) -> Dict[str, Any]:
    if not context.user_id:
        raise UserIdRequiredError()

    children: List[Dict[str, Any]] = []
    for child_id in await accessible_child_ids(store, context):
        child = await store.get_child(child_id)
        if child is None:
            continue
        vocabulary = await store.vocabulary(child.id)
        children.append({
            **_child_summary(child),
            "totalUsages": sum(v.usage_count for v in vocabulary),
            "uniqueSymbolsUsed": sum(1 for v in vocabulary if v.usage_count > 0),
        })

    children.sort(key=lambda c: c["name"].lower())
    return {"children": children, "totalCount": len(children)}


async def list_sessions(store: TherapyStore, data: ListSessionsInput, context: ToolContext) -> Dict[str, Any]:
    if not context.user_id:
        raise UserIdRequiredError()

    if data.child_id is not None:
        child = await verify_child_access(store, str(data.child_id), context)
        child_ids = [child.id]
    else:
        child_ids = await accessible_child_ids(store, context)

    if not child_ids:
        return {"sessions": [], "totalCount": 0, "hasMore": False}

    start = _parse_date(data.start_date)
    end = _parse_date(data.end_date)

    sessions = [
        s for s in await store.list_sessions(child_ids, data.type)
        if (start is None or s.date >= start) and (end is None or s.date <= end)
    ]
    page = sessions[:data.limit]

    return {
        "sessions": [
            {
                "id": s.id,
                "childId": s.child_id,
                "type": s.type,
                "date": s.date.isoformat(),
                "durationMinutes": s.duration_minutes,
                "therapistId": s.therapist_id,
                "notesPreview": (s.notes or "")[:200] or None,
            }
            for s in page
        ],
        "totalCount": len(sessions),
        "hasMore": len(sessions) > len(page),
    }


async def list_goals(store: TherapyStore, data: ListGoalsInput, context: ToolContext) -> Dict[str, Any]:
    child = await verify_child_access(store, str(data.child_id), context)

    status = None if data.status == "all" else data.status
    goals = sorted(await store.list_goals(child.id, status), key=lambda g: g.created_at)

    return {
        "goals": [_goal_dict(g) for g in goals],
        "totalCount": len(goals),
        "childId": child.id,
        "statusFilter": data.status,
    }


async def search_vocabulary(store: TherapyStore, data: SearchVocabularyInput, context: ToolContext) -> Dict[str, Any]:
    child = await verify_child_access(store, str(data.child_id), context)

    ranked = sorted(await store.vocabulary(child.id), key=lambda v: v.usage_count, reverse=True)
    query = data.query.lower()

    matches = [
        (rank, entry)
        for rank, entry in enumerate(ranked, start=1)
        if query in entry.label.lower() or query in entry.category.lower()
    ]

    return {
        "symbols": [
            {
                "symbolId": entry.symbol_id,
                "name": entry.label,
                "category": entry.category or "General",
                "usageStats": {"totalUsages": entry.usage_count, "usageRank": rank},
            }
            for rank, entry in matches[:MAX_SEARCH_RESULTS]
        ],
        "totalMatches": len(matches),
        "query": data.query,
        "childId": child.id,
    }


async def get_session(store: TherapyStore, data: GetSessionInput, context: ToolContext) -> Dict[str, Any]:
    session = await _accessible_session(store, str(data.session_id), context)

    child = await store.get_child(session.child_id)
    therapist = await store.find_therapist(session.therapist_id) if session.therapist_id else None

    goals_addressed = []
    for entry in session.goals_worked_on:
        goal = await store.get_goal(entry["goalId"])
        if goal is None:
            continue
        goals_addressed.append({
            "id": goal.id,
            "name": goal.title,
            "targetDescription": goal.criteria or goal.description,
            "currentProgress": goal.progress,
            "status": goal.status,
        })

    return {
        **_session_dict(session),
        "childName": child.name if child else None,
        "therapistName": therapist.name if therapist else None,
        "therapistEmail": therapist.email if therapist else None,
        "goalsAddressed": goals_addressed,
    }


def _aac_progress(current: List[UsageLog], previous: List[UsageLog], days: int) -> Dict[str, Any]:
    symbols = Counter(u.symbol_id for u in current)
    previous_symbols = {u.symbol_id for u in previous}
    new_symbols = [s for s in symbols if s not in previous_symbols]
    daily = Counter(u.timestamp.date() for u in current)

    total, before = len(current), len(previous)
    if before:
        percent_change = round((total - before) / before * 100)
    else:
        percent_change = 100 if total else 0

    return {
        "totalSelections": total,
        "previousPeriodSelections": before,
        "percentChange": percent_change,
        "uniqueSymbols": len(symbols),
        "previousPeriodUniqueSymbols": len(previous_symbols),
        "newSymbolsLearned": len(new_symbols),
        "averageSelectionsPerDay": round(total / days, 1),
        "mostActiveDay": daily.most_common(1)[0][0].isoformat() if daily else None,
        "mostUsedSymbols": [{"symbolId": s, "count": c} for s, c in symbols.most_common(5)],
        "vocabularyGrowthRate": round(len(new_symbols) / (days / 7), 1),
    }


def _milestones(aac: Dict[str, Any], period: str) -> List[Dict[str, Any]]:
    today = date.today().isoformat()
    milestones = []

    if aac["uniqueSymbols"] >= 100:
        milestones.append({
            "id": "vocab-100",
            "type": "vocabulary",
            "title": "100 Symbol Vocabulary!",
            "description": f"{aac['uniqueSymbols']} unique symbols in communication repertoire",
            "achievedAt": today,
        })
    elif aac["uniqueSymbols"] >= 50:
        milestones.append({
            "id": "vocab-50",
            "type": "vocabulary",
            "title": "50 Symbol Milestone",
            "description": "Building a solid vocabulary foundation",
            "achievedAt": today,
        })

    if aac["newSymbolsLearned"] >= 10:
        milestones.append({
            "id": f"new-symbols-{period}",
            "type": "vocabulary",
            "title": f"{aac['newSymbolsLearned']} New Symbols!",
            "description": f"Learned {aac['newSymbolsLearned']} new symbols this {period}",
            "achievedAt": today,
        })

    if aac["percentChange"] >= 25:
        milestones.append({
            "id": f"usage-increase-{period}",
            "type": "usage",
            "title": "Communication Surge!",
            "description": f"{aac['percentChange']}% increase in AAC usage compared to previous {period}",
            "achievedAt": today,
        })

    return milestones


def _overall_summary(name: str, period: str, aac: Dict[str, Any], goals: Dict[str, Any]) -> str:
    parts = []

    if aac["totalSelections"] > 0:
        change = aac["percentChange"]
        if change > 0:
            trend = f"up {change}%"
        elif change < 0:
            trend = f"down {abs(change)}%"
        else:
            trend = "steady"
        parts.append(
            f"This {period}, {name} made {aac['totalSelections']} symbol selections ({trend} from last {period})."
        )
        if aac["newSymbolsLearned"] > 0:
            parts.append(f"They learned {aac['newSymbolsLearned']} new symbols!")
    else:
        parts.append(f"No AAC usage recorded for {name} this {period}.")

    if goals["activeGoals"] > 0:
        parts.append(f"Progress on {goals['activeGoals']} active goals averages {goals['averageProgress']}%.")

    return " ".join(parts)


async def get_progress_summary(store: TherapyStore, data: GetProgressSummaryInput, context: ToolContext) -> Dict[str, Any]:
    """
    AAC usage, goals and sessions for the period ending today, with
    usage compared against the period of equal length before it.
    """
    child = await verify_child_access(store, str(data.child_id), context)

    days = PERIOD_DAYS[data.period]
    end = date.today()
    start = end - timedelta(days=days)
    previous_start = start - timedelta(days=days)

    current = await store.usage_logs(child.id, start, end)
    previous = await store.usage_logs(child.id, previous_start, start - timedelta(days=1))
    aac = _aac_progress(current, previous, (end - start).days + 1)

    goals = await store.list_goals(child.id)
    active = [g for g in goals if g.status == "active"]
    goals_progress = {
        "totalGoals": len(goals),
        "activeGoals": len(active),
        "completedGoals": sum(1 for g in goals if g.status == "completed"),
        "averageProgress": round(sum(g.progress for g in active) / len(active)) if active else 0,
    }

    sessions = [s for s in await store.list_sessions([child.id]) if start <= s.date <= end]
    by_type: Dict[str, Dict[str, Any]] = {}
    for s in sessions:
        entry = by_type.setdefault(s.type, {"type": s.type, "count": 0, "totalMinutes": 0})
        entry["count"] += 1
        entry["totalMinutes"] += s.duration_minutes or 0

    return {
        "childId": child.id,
        "childName": child.name,
        "period": data.period,
        "dateRange": {"startDate": start.isoformat(), "endDate": end.isoformat()},
        "aacProgress": aac,
        "goalsProgress": goals_progress,
        "sessionMetrics": {
            "totalSessions": len(sessions),
            "totalMinutes": sum(s.duration_minutes or 0 for s in sessions),
            "sessionsByType": sorted(by_type.values(), key=lambda e: e["count"], reverse=True),
            "averageSessionsPerWeek": round(len(sessions) / (days / 7), 1),
        },
        "milestones": _milestones(aac, data.period),
        "overallSummary": _overall_summary(child.name, data.period, aac, goals_progress),
    }


# =============================================================================
# Write tools
# =============================================================================

async def create_goal(store: TherapyStore, data: CreateGoalInput, context: ToolContext) -> ToolResult:
    child = await verify_child_access(store, str(data.child_id), context)

    target = None
    if data.target_date is not None:
        target = _parse_date(data.target_date)
        if target is None:
            return ToolResult.fail(f"Invalid target date: {data.target_date}")

        today = date.today()
        if target < today:
            return ToolResult.fail("Target date should be in the future. Goals are forward-looking.")
        if target > _add_years(today, 2):
            return ToolResult.fail("Target date cannot be more than 2 years in the future.")

    goal = await store.save_goal(Goal(
        id=str(uuid.uuid4()),
        child_id=child.id,
        type=data.type,
        title=data.title,
        description=data.description,
        target_date=target,
        criteria=data.criteria,
    ))

    return ToolResult.ok({
        "goal": _goal_dict(goal),
        "message": f'Successfully created {data.type} goal: "{data.title}"',
    })


async def add_note(store: TherapyStore, data: AddNoteInput, context: ToolContext) -> ToolResult:
    child = await verify_child_access(store, str(data.child_id), context)

    content = data.content.strip()
    if not content:
        return ToolResult.fail("Note content cannot be empty or just whitespace")

    note = await store.add_note(Note(
        id=str(uuid.uuid4()),
        child_id=child.id,
        author_id=context.user_id,
        type=data.type,
        content=content,
    ))

    label = "note" if note.type == "general" else note.type
    return ToolResult.ok({
        "note": {
            "id": note.id,
            "childId": note.child_id,
            "authorId": note.author_id,
            "type": note.type,
            "content": note.content,
            "createdAt": _iso(note.created_at),
        },
        "message": f"Successfully added {label}",
    })


async def update_goal(store: TherapyStore, data: UpdateGoalInput, context: ToolContext) -> ToolResult:
    if data.status is None and data.progress is None and data.notes is None:
        return ToolResult.fail("At least one field (status, progress, or notes) must be provided to update")

    if not context.user_id:
        raise UserIdRequiredError()

    goal = await store.get_goal(str(data.goal_id))
    if goal is None:
        raise GoalNotFoundError(str(data.goal_id))
    await verify_child_access(store, goal.child_id, context)

    if data.status == "completed" and data.progress is not None and data.progress != 100:
        return ToolResult.fail("When marking a goal as completed, progress should be 100%")

    changes: List[str] = []
    if data.status is not None:
        goal.status = data.status
        if data.status == "completed":
            goal.progress = 100
        changes.append(f"status → {data.status}")
    if data.progress is not None:
        goal.progress = data.progress
        changes.append(f"progress → {data.progress}%")
    if data.notes is not None:
        await store.add_note(Note(
            id=str(uuid.uuid4()),
            child_id=goal.child_id,
            author_id=context.user_id,
            type="general",
            content=f"[{goal.title}] {data.notes}",
        ))
        changes.append("notes added")

    goal.updated_at = datetime.now(timezone.utc)
    goal = await store.save_goal(goal)

    message = f'Updated goal "{goal.title}": {", ".join(changes)}'
    if data.progress == 100 and data.status is None:
        message += ". Progress is at 100%; consider marking this goal as completed."

    return ToolResult.ok({"goal": _goal_dict(goal), "message": message})


async def create_session(store: TherapyStore, data: CreateSessionInput, context: ToolContext) -> ToolResult:
    child = await verify_child_access(store, str(data.child_id), context)

    session_date = _parse_date(data.session_date)
    if session_date is None:
        return ToolResult.fail(f"Invalid session date: {data.session_date}")

    today = date.today()
    if session_date > today:
        return ToolResult.fail(
            "Cannot create a session with a future date. Sessions should be logged after they occur."
        )
    if session_date < _add_years(today, -1):
        return ToolResult.fail("Cannot create a session more than 1 year in the past.")

    goals_worked_on = [g.model_dump(mode="json", by_alias=True, exclude_none=True) for g in data.goals_worked_on or []]
    missing = await _foreign_goals(store, child.id, [g["goalId"] for g in goals_worked_on])
    if missing:
        return ToolResult.fail(f"Goals not found or don't belong to this child: {', '.join(missing)}")

    session = await store.save_session(TherapySession(
        id=str(uuid.uuid4()),
        child_id=child.id,
        type=data.type,
        date=session_date,
        therapist_id=str(data.therapist_id) if data.therapist_id else None,
        duration_minutes=data.duration_minutes,
        notes=data.notes,
        goals_worked_on=goals_worked_on,
    ))

    return ToolResult.ok({
        "session": _session_dict(session),
        "message": f"Successfully logged {data.type} session for {data.session_date}",
    })


async def update_session(store: TherapyStore, data: UpdateSessionInput, context: ToolContext) -> ToolResult:
    if data.notes is None and data.duration is None and data.goals_addressed is None:
        return ToolResult.fail(
            "At least one field (notes, duration, or goalsAddressed) must be provided to update"
        )

    session = await _accessible_session(store, str(data.session_id), context)

    changes: List[str] = []
    if data.notes is not None:
        session.notes = data.notes
        changes.append("notes")
    if data.duration is not None:
        session.duration_minutes = data.duration
        changes.append("duration")
    if data.goals_addressed is not None:
        goal_ids = [str(g) for g in data.goals_addressed]
        missing = await _foreign_goals(store, session.child_id, goal_ids)
        if missing:
            return ToolResult.fail(f"Goals not found or don't belong to this child: {', '.join(missing)}")

        # Keep progress already recorded for goals that stay on the session
        recorded = {g["goalId"]: g for g in session.goals_worked_on}
        session.goals_worked_on = [recorded.get(goal_id, {"goalId": goal_id}) for goal_id in goal_ids]
        changes.append("goals addressed")

    session.updated_at = datetime.now(timezone.utc)
    session = await store.save_session(session)

    return ToolResult.ok({
        "session": _session_dict(session),
        "message": f"Successfully updated session: {', '.join(changes)}",
    })


async def create_custom_symbol(store: TherapyStore, data: CreateCustomSymbolInput, context: ToolContext) -> ToolResult:
    child = await verify_child_access(store, str(data.child_id), context)

    symbol = await store.save_custom_symbol(CustomSymbol(
        id=str(uuid.uuid4()),
        child_id=child.id,
        name=data.name,
        category_id=str(data.category_id),
        image_source=data.image_source,
        name_bulgarian=data.name_bulgarian,
        image_url=str(data.image_url) if data.image_url else None,
        image_prompt=data.image_prompt,
    ))

    if symbol.image_source == "generate":
        prompt = symbol.image_prompt or ""
        image = f'AI-generated image from prompt: "{prompt[:50]}{"..." if len(prompt) > 50 else ""}"'
    else:
        image = "using provided image URL"

    return ToolResult.ok({
        "symbol": {
            "id": symbol.id,
            "childId": symbol.child_id,
            "name": symbol.name,
            "nameBulgarian": symbol.name_bulgarian,
            "categoryId": symbol.category_id,
            "imageSource": symbol.image_source,
            "imageUrl": symbol.image_url,
            "imagePrompt": symbol.image_prompt,
            "status": symbol.status,
            "createdAt": _iso(symbol.created_at),
            "updatedAt": _iso(symbol.updated_at),
        },
        "message": f'Successfully created custom symbol "{symbol.name}" (pending approval). Image: {image}',
    })


# =============================================================================
# Registration
# =============================================================================

def create_default_tools(store: TherapyStore, registry: Optional[ToolRegistry] = None) -> ToolRegistry:
    """Register the therapy tools against `store` and return the registry."""
    registry = registry if registry is not None else ToolRegistry()

    read_tools = [
        ("get_child",
         "Get detailed information about a child including their profile, assigned therapists, "
         "and summary statistics. Use this to understand a specific child's setup and current status.",
         GetChildInput, get_child),
        ("list_children",
         "List all children you have access to, with basic statistics for each. Use this to see "
         "which children you can help with.",
         ListChildrenInput, list_children),
        ("list_sessions",
         "List therapy sessions with optional filters for child, session type (ABA, OT, SLP, other), "
         "and date range. Returns session summaries including duration, therapist, and notes preview.",
         ListSessionsInput, list_sessions),
        ("list_goals",
         "List therapy goals for a child with optional status filtering (active, completed, paused, or all). "
         "Returns goal details including progress percentage and therapy type.",
         ListGoalsInput, list_goals),
        ("search_vocabulary",
         "Search for symbols in a child's AAC vocabulary by name or category. Returns matching symbols "
         "with their usage statistics.",
         SearchVocabularyInput, search_vocabulary),
        ("get_session",
         "Get full details of a specific therapy session including complete notes and the goals that were "
         "addressed. Use this to review session information for progress analysis or discussion with caregivers.",
         GetSessionInput, get_session),
        ("get_progress_summary",
         "Get a progress summary for a child including AAC usage growth, goals progress, session frequency, "
         "and achieved milestones. Available periods: week, month, quarter, or year. Use this for progress "
         "reports and identifying trends.",
         GetProgressSummaryInput, get_progress_summary),
    ]
    for name, description, input_model, fn in read_tools:
        registry.register(create_read_only_tool(name, description, input_model, partial(fn, store)))

    write_tools = [
        ("create_goal",
         "Create a new therapy goal for a child. Confirm goal details with the user before calling this.",
         CreateGoalInput, create_goal),
        ("add_note",
         "Add a quick note about a child without creating a full therapy session. Use for observations, "
         "milestones, concerns, or general notes.",
         AddNoteInput, add_note),
        ("update_goal",
         "Update a therapy goal's status or progress, or attach notes to it. Confirm the change with the "
         "user before calling this.",
         UpdateGoalInput, update_goal),
        ("create_session",
         "Log a new therapy session. Confirm session details with the user before calling this. Records the "
         "date, type (ABA, OT, SLP, other), duration, notes, and which goals were worked on.",
         CreateSessionInput, create_session),
        ("update_session",
         "Update an existing therapy session's notes, duration, or goals addressed. Confirm changes with the "
         "user before calling this.",
         UpdateSessionInput, update_session),
        ("create_custom_symbol",
         "Add a custom symbol to a child's AAC vocabulary, from an image URL or an AI image prompt. Custom "
         "symbols require approval before appearing in the child's AAC app.",
         CreateCustomSymbolInput, create_custom_symbol),
    ]
    for name, description, input_model, fn in write_tools:
        registry.register(create_tool(name, description, input_model, partial(fn, store), category="write"))

    return registry
