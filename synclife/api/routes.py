"""
API de SyncLife.

El usuario se identifica con el header `X-User-Id`; la autenticación
ocurre antes de llegar aquí.
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, Header, Query, Request

from synclife.api.schemas import (
    CardCreate,
    ChatAudioIn,
    ChatImageIn,
    ChatMessageIn,
    MutationResponse,
    ProjectCreate,
    SubTaskCreate,
    TaskBody,
    TaskLogCreate,
    TransactionCreate,
)
from synclife.domain.services.finance_summary import ChartPeriod, cash_balance, spending_chart
from synclife.domain.services.task_views import (
    TaskSort,
    TaskView,
    filter_tasks,
    group_by_project,
    sort_tasks,
)
from synclife.session import SessionRegistry, UserSession
from synclife.utils.errors import NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter()


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


async def get_user_session(
    x_user_id: str = Header(..., min_length=1),
    registry: SessionRegistry = Depends(get_registry),
) -> UserSession:
    return await registry.get(x_user_id)


# ==================== SNAPSHOT ====================


@router.get("/snapshot", tags=["store"])
async def get_snapshot(session: UserSession = Depends(get_user_session)):
    """Estado completo del usuario."""
    store = session.store
    return {
        "transactions": [t.to_dict() for t in store.transactions],
        "tasks": [t.to_dict() for t in store.tasks],
        "projects": [p.to_dict() for p in store.projects],
        "cards": [c.to_dict() for c in store.cards],
    }


@router.post("/snapshot/reload", tags=["store"])
async def reload_snapshot(session: UserSession = Depends(get_user_session)):
    """Recarga el snapshot desde la base de datos."""
    loaded = await session.store.load()
    session.loaded = session.loaded or loaded
    return {"reloaded": loaded}


# ==================== TRANSACTIONS ====================


@router.post("/transactions", response_model=MutationResponse, tags=["finance"])
async def create_transaction(
    body: TransactionCreate,
    session: UserSession = Depends(get_user_session),
):
    result = await session.store.add_transaction(body.to_entity())
    return MutationResponse.from_result(result)


@router.delete("/transactions/{transaction_id}", response_model=MutationResponse, tags=["finance"])
async def delete_transaction(
    transaction_id: str,
    session: UserSession = Depends(get_user_session),
):
    result = await session.store.delete_transaction(transaction_id)
    return MutationResponse.from_result(result)


# ==================== CARDS ====================


@router.post("/cards", response_model=MutationResponse, tags=["finance"])
async def create_card(body: CardCreate, session: UserSession = Depends(get_user_session)):
    result = await session.store.add_card(body.to_entity())
    return MutationResponse.from_result(result)


@router.get("/cards/summary", tags=["finance"])
async def get_cards_summary(session: UserSession = Depends(get_user_session)):
    """Fatura abierta, crédito disponible y vencimiento por tarjeta."""
    session.refresh()
    return {"cards": [s.to_dict() for s in session.card_summaries]}


@router.delete("/cards/{card_id}", response_model=MutationResponse, tags=["finance"])
async def delete_card(card_id: str, session: UserSession = Depends(get_user_session)):
    result = await session.store.delete_card(card_id)
    return MutationResponse.from_result(result)


@router.post("/cards/{card_id}/pay", response_model=MutationResponse, tags=["finance"])
async def pay_card_invoice(card_id: str, session: UserSession = Depends(get_user_session)):
    if session.store.get_card(card_id) is None:
        raise NotFoundError(f"Tarjeta {card_id} no encontrada")
    result = await session.store.pay_card_invoice(card_id)
    return MutationResponse.from_result(result)


@router.get("/finance/summary", tags=["finance"])
async def get_finance_summary(
    period: ChartPeriod = Query(ChartPeriod.WEEK),
    session: UserSession = Depends(get_user_session),
):
    """Saldo en efectivo y gráfico de gastos del período."""
    store = session.store
    today = session.clock().date()
    return {
        "period": period.value,
        "cash_balance": float(cash_balance(store.transactions)),
        "chart": [p.to_dict() for p in spending_chart(store.transactions, period, today)],
    }


# ==================== TASKS ====================


@router.get("/tasks", tags=["tasks"])
async def list_tasks(
    view: TaskView = Query(TaskView.DAY),
    anchor: date | None = Query(None, alias="date"),
    sort_by: TaskSort = Query(TaskSort.TIME),
    group: bool = Query(False),
    session: UserSession = Depends(get_user_session),
):
    """Tareas de la vista, ordenadas y opcionalmente agrupadas por proyecto."""
    anchor = anchor or session.clock().date()
    tasks = sort_tasks(filter_tasks(session.store.tasks, view, anchor), sort_by)
    response = {
        "view": view.value,
        "date": anchor.isoformat(),
        "tasks": [t.to_dict() for t in tasks],
    }
    if group:
        response["groups"] = [g.to_dict() for g in group_by_project(tasks, session.store.projects)]
    return response


@router.post("/tasks", response_model=MutationResponse, tags=["tasks"])
async def create_task(body: TaskBody, session: UserSession = Depends(get_user_session)):
    result = await session.store.add_task(body.to_entity())
    return MutationResponse.from_result(result)


@router.put("/tasks/{task_id}", response_model=MutationResponse, tags=["tasks"])
async def update_task(
    task_id: str,
    body: TaskBody,
    session: UserSession = Depends(get_user_session),
):
    result = await session.store.update_task(body.to_entity(id=task_id))
    return MutationResponse.from_result(result)


@router.delete("/tasks/{task_id}", response_model=MutationResponse, tags=["tasks"])
async def delete_task(task_id: str, session: UserSession = Depends(get_user_session)):
    result = await session.store.delete_task(task_id)
    return MutationResponse.from_result(result)


@router.post("/tasks/{task_id}/toggle", response_model=MutationResponse, tags=["tasks"])
async def toggle_task(task_id: str, session: UserSession = Depends(get_user_session)):
    result = await session.store.toggle_task(task_id)
    return MutationResponse.from_result(result)


@router.post("/tasks/{task_id}/priority", response_model=MutationResponse, tags=["tasks"])
async def cycle_priority(task_id: str, session: UserSession = Depends(get_user_session)):
    result = await session.store.cycle_priority(task_id)
    return MutationResponse.from_result(result)


@router.post("/tasks/{task_id}/subtasks", response_model=MutationResponse, tags=["tasks"])
async def add_subtask(
    task_id: str,
    body: SubTaskCreate,
    session: UserSession = Depends(get_user_session),
):
    result = await session.store.add_subtask(task_id, body.title)
    return MutationResponse.from_result(result)


@router.post(
    "/tasks/{task_id}/subtasks/{subtask_id}/toggle",
    response_model=MutationResponse,
    tags=["tasks"],
)
async def toggle_subtask(
    task_id: str,
    subtask_id: str,
    session: UserSession = Depends(get_user_session),
):
    result = await session.store.toggle_subtask(task_id, subtask_id)
    return MutationResponse.from_result(result)


@router.post("/tasks/{task_id}/logs", response_model=MutationResponse, tags=["tasks"])
async def add_task_log(
    task_id: str,
    body: TaskLogCreate,
    session: UserSession = Depends(get_user_session),
):
    result = await session.store.add_task_log(task_id, body.text)
    return MutationResponse.from_result(result)


# ==================== PROJECTS ====================


@router.post("/projects", response_model=MutationResponse, tags=["projects"])
async def create_project(body: ProjectCreate, session: UserSession = Depends(get_user_session)):
    result = await session.store.add_project(body.to_entity())
    return MutationResponse.from_result(result)


@router.delete("/projects/{project_id}", response_model=MutationResponse, tags=["projects"])
async def delete_project(project_id: str, session: UserSession = Depends(get_user_session)):
    result = await session.store.delete_project(project_id)
    return MutationResponse.from_result(result)


# ==================== NOTIFICATIONS ====================


@router.get("/notifications", tags=["notifications"])
async def list_notifications(session: UserSession = Depends(get_user_session)):
    session.refresh()
    return {"notifications": [n.to_dict() for n in session.notifications]}


@router.post(
    "/notifications/{notification_id}/action",
    response_model=MutationResponse,
    tags=["notifications"],
)
async def run_notification_action(
    notification_id: str,
    session: UserSession = Depends(get_user_session),
):
    result = await session.run_action(notification_id)
    return MutationResponse.from_result(result)


# ==================== CHAT ====================


def _chat_response(session: UserSession, messages: list) -> dict:
    return {
        "messages": [m.to_dict() for m in messages],
        "open": session.dispatcher.is_open,
    }


@router.post("/chat/messages", tags=["chat"])
async def send_chat_message(body: ChatMessageIn, session: UserSession = Depends(get_user_session)):
    messages = await session.dispatcher.handle_message(body.text)
    return _chat_response(session, messages)


@router.post("/chat/audio", tags=["chat"])
async def send_chat_audio(body: ChatAudioIn, session: UserSession = Depends(get_user_session)):
    messages = await session.dispatcher.handle_audio(body.decoded(), body.mime_type)
    return _chat_response(session, messages)


@router.post("/chat/image", tags=["chat"])
async def send_chat_image(body: ChatImageIn, session: UserSession = Depends(get_user_session)):
    messages = await session.dispatcher.handle_image(body.decoded(), body.mime_type, body.caption)
    return _chat_response(session, messages)


@router.get("/chat/transcript", tags=["chat"])
async def get_chat_transcript(session: UserSession = Depends(get_user_session)):
    return _chat_response(session, session.dispatcher.transcript)


@router.delete("/chat", tags=["chat"])
async def close_chat(session: UserSession = Depends(get_user_session)):
    """Cierra la ventana de chat: descarta sesión y transcript."""
    session.dispatcher.close_chat()
    return {"open": False}


# ==================== SESSION ====================


@router.delete("/session", tags=["session"])
async def close_session(
    x_user_id: str = Header(..., min_length=1),
    registry: SessionRegistry = Depends(get_registry),
):
    """Cierra la sesión del usuario (logout): chat, store y listeners."""
    await registry.close(x_user_id)
    return {"closed": True}
