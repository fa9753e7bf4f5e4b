import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Cookie, Depends, Form, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from .config import settings
from .errors import AuthError, InvalidTransition
from .globals import templates
from .models import Identity
from .profile import build_profile
from .services import GymServices
from .session import ChooseEnglish, ChooseJapanese, Event, Tick, WorkoutSession
from .store import new_user_record

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Dependencies ---
def get_services(request: Request) -> GymServices:
    return request.app.state.services


def get_auth_token(
    auth_id: Optional[str] = Cookie(None, alias=settings.AUTH_COOKIE_NAME)
) -> Optional[str]:
    return auth_id


def get_session_id(
    session_id: Optional[str] = Cookie(None, alias=settings.SESSION_COOKIE_NAME)
) -> Optional[str]:
    return session_id


def get_identity(
    services: GymServices = Depends(get_services),
    token: Optional[str] = Depends(get_auth_token),
) -> Optional[Identity]:
    return services.auth_sessions.get(token)


def require_identity(identity: Optional[Identity] = Depends(get_identity)) -> Identity:
    if identity is None:
        raise AuthError("Not signed in")
    return identity


def get_workout(
    services: GymServices = Depends(get_services),
    identity: Identity = Depends(require_identity),
    session_id: Optional[str] = Depends(get_session_id),
) -> WorkoutSession:
    session = services.workouts.get(session_id, identity.uid)
    if session is None:
        raise InvalidTransition("No active workout")
    return session


def firebase_web_config() -> dict:
    return {
        "apiKey": settings.FIREBASE_WEB_API_KEY,
        "authDomain": settings.FIREBASE_AUTH_DOMAIN,
        "projectId": settings.FIREBASE_PROJECT_ID,
    }


# --- Pages ---
@router.get("/", response_class=HTMLResponse)
async def home(request: Request, identity: Optional[Identity] = Depends(get_identity)):
    return templates.TemplateResponse(
        request,
        "index.html",
        {"identity": identity, "firebase_config": firebase_web_config()},
    )


@router.get("/workout", response_class=HTMLResponse)
async def workout_page(
    request: Request, identity: Optional[Identity] = Depends(get_identity)
):
    if identity is None:
        return RedirectResponse(url="/", status_code=302)
    return templates.TemplateResponse(request, "workout.html", {"identity": identity})


@router.get("/profile", response_class=HTMLResponse)
async def profile_page(
    request: Request, identity: Optional[Identity] = Depends(get_identity)
):
    if identity is None:
        return RedirectResponse(url="/", status_code=302)
    return templates.TemplateResponse(request, "profile.html", {"identity": identity})


# --- Auth ---
@router.post("/api/auth/session")
async def sign_in(
    id_token: str = Form(...), services: GymServices = Depends(get_services)
):
    identity = await run_in_threadpool(services.identity.verify, id_token)
    _, created = await run_in_threadpool(services.store.ensure_user, identity)
    token = services.auth_sessions.sign_in(identity)
    logger.info(f"Signed in {identity.uid} (new user: {created})")

    response = JSONResponse(
        {
            "uid": identity.uid,
            "email": identity.email,
            "display_name": identity.display_name,
            "is_new_user": created,
        }
    )
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME, value=token, httponly=True, samesite="Lax"
    )
    return response


@router.post("/api/auth/logout")
async def sign_out(
    services: GymServices = Depends(get_services),
    token: Optional[str] = Depends(get_auth_token),
):
    services.auth_sessions.sign_out(token)
    response = JSONResponse({"status": "success"})
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return response


@router.get("/api/me", response_model=Identity)
async def me(identity: Identity = Depends(require_identity)):
    return identity


# --- Workout ---
@router.post("/api/workout/start")
async def start_workout(
    services: GymServices = Depends(get_services),
    identity: Identity = Depends(require_identity),
    session_id: Optional[str] = Depends(get_session_id),
):
    if session_id:
        services.workouts.discard(session_id)
    session = await run_in_threadpool(services.workouts.start, identity.uid)

    response = JSONResponse(session.state())
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session.id,
        httponly=True,
        samesite="Lax",
    )
    return response


@router.get("/api/workout")
async def workout_state(session: WorkoutSession = Depends(get_workout)):
    return session.state()


def session_view(session: WorkoutSession) -> dict:
    state = session.state()
    if session.is_complete:
        state["report"] = jsonable_encoder(session.report())
    return state


def apply_event(
    event: Event,
    session: WorkoutSession,
    services: GymServices,
    identity: Identity,
    background_tasks: BackgroundTasks,
) -> dict:
    finished = services.workouts.dispatch(session, event)
    if finished:
        # The report comes from local state; saving must not hold it up.
        background_tasks.add_task(services.workouts.save_workout, identity.uid, session)
    return session_view(session)


@router.post("/api/workout/tick")
async def tick(
    background_tasks: BackgroundTasks,
    session: WorkoutSession = Depends(get_workout),
    services: GymServices = Depends(get_services),
    identity: Identity = Depends(require_identity),
):
    # A tick that crossed the last answer in flight gets the report back.
    if session.is_complete:
        return session_view(session)
    return apply_event(Tick(), session, services, identity, background_tasks)


@router.post("/api/workout/japanese")
async def answer_japanese(
    background_tasks: BackgroundTasks,
    option_key: str = Form(...),
    session: WorkoutSession = Depends(get_workout),
    services: GymServices = Depends(get_services),
    identity: Identity = Depends(require_identity),
):
    return apply_event(
        ChooseJapanese(option_key=option_key),
        session,
        services,
        identity,
        background_tasks,
    )


@router.post("/api/workout/english")
async def answer_english(
    background_tasks: BackgroundTasks,
    option_key: str = Form(...),
    session: WorkoutSession = Depends(get_workout),
    services: GymServices = Depends(get_services),
    identity: Identity = Depends(require_identity),
):
    return apply_event(
        ChooseEnglish(option_key=option_key),
        session,
        services,
        identity,
        background_tasks,
    )


@router.post("/api/workout/quit")
async def quit_workout(
    session: WorkoutSession = Depends(get_workout),
    services: GymServices = Depends(get_services),
):
    services.workouts.quit(session)
    response = JSONResponse({"status": "success"})
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response


@router.get("/api/workout/report")
async def workout_report(session: WorkoutSession = Depends(get_workout)):
    return session.report()


# --- Profile ---
@router.get("/api/profile")
async def profile(
    services: GymServices = Depends(get_services),
    identity: Identity = Depends(require_identity),
):
    user = await run_in_threadpool(services.store.get_user, identity.uid)
    if user is None:
        user = new_user_record(identity)
    return build_profile(user)
