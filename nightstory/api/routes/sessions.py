"""Story session endpoints."""

from fastapi import APIRouter, BackgroundTasks, HTTPException, status

from nightstory.core.errors import NightStoryError
from nightstory.core.modules.narrative_generator import validate_answer_set
from nightstory.core.types import AnswerSet
from ..models.requests import CreateSessionRequest
from ..models.responses import CreateSessionResponse, SessionResponse
from ..dependencies import Registry, Session

router = APIRouter()


def _to_answer_set(request: CreateSessionRequest) -> AnswerSet:
    """Normalize and validate the questionnaire, 422 on unusable answers."""
    try:
        answer_set = request.to_answer_set()
        validate_answer_set(answer_set)
    except NightStoryError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"error_code": e.error_code, "message": e.message, "details": e.details},
        )
    return answer_set


@router.post(
    "",
    response_model=CreateSessionResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start a story session",
    description="Submit the questionnaire. Story and cover are generated in the background; poll the session for progress.",
)
async def create_session(request: CreateSessionRequest, registry: Registry, background_tasks: BackgroundTasks):
    """Create a session and start generating."""
    answer_set = _to_answer_set(request)

    session = registry.create()
    session.submit(answer_set)
    background_tasks.add_task(session.start)

    return CreateSessionResponse(session_id=session.session_id)


@router.get(
    "/{session_id}",
    response_model=SessionResponse,
    summary="Get a story session",
    description="Narrative and image phases, the story, the cover and any recoverable errors.",
)
async def get_session(session: Session):
    """Get the current session state."""
    return session.snapshot()


@router.post(
    "/{session_id}/answers",
    response_model=SessionResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Submit answers to a fresh session",
    description="Reuse a session after 'start new session'. Rejected while the previous story is still held.",
)
async def submit_answers(request: CreateSessionRequest, session: Session, background_tasks: BackgroundTasks):
    """Submit a new questionnaire to a reset session."""
    if session.started:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Session already started; start a new session first",
        )
    answer_set = _to_answer_set(request)
    session.submit(answer_set)
    background_tasks.add_task(session.start)
    return session.snapshot()


@router.post(
    "/{session_id}/cover",
    response_model=SessionResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Trigger cover acquisition",
    description="Idempotent. Starts the cover only if it was requested, the story is ready and no cover is in flight or final.",
)
async def trigger_cover(session: Session, background_tasks: BackgroundTasks):
    """Re-entrant cover trigger."""
    background_tasks.add_task(session.acquire_cover)
    return session.snapshot()


@router.post(
    "/{session_id}/new",
    response_model=SessionResponse,
    summary="Start a new session",
    description="Clear the cached answers and cover and reset every phase.",
)
async def start_new_session(session: Session):
    """Reset the session."""
    session.start_new_session()
    return session.snapshot()
