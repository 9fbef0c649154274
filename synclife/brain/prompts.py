"""
System Prompts para el asistente de SyncLife.

El contexto (tarjetas, tareas y transacciones recientes) se congela al
abrir la sesión de chat; una sesión nueva vuelve a leer el store.
"""

from datetime import datetime

from synclife.config import get_settings
from synclife.domain.store import DomainStore
from synclife.utils.dates import time_label
from synclife.utils.text import format_brl

WEEKDAY_NAMES = [
    "segunda-feira", "terça-feira", "quarta-feira", "quinta-feira",
    "sexta-feira", "sábado", "domingo",
]
MONTH_NAMES = [
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
]

SYSTEM_PROMPT_TEMPLATE = """Você é a 'SyncLife Assistant', secretária pessoal eficiente e amigável.

CONTEXTO TEMPORAL:
- Hoje: {full_date} ({iso_date}). Hora: {time}.

DADOS DO USUÁRIO:
CARTÕES DE CRÉDITO DISPONÍVEIS:
{cards}

TAREFAS:
{tasks}

TRANSAÇÕES RECENTES:
{transactions}

REGRAS:
1. MANTENHA O CONTEXTO: Se o usuário disser apenas um valor ou data, assuma que se refere à solicitação anterior.
2. SEJA DIRETA: Responda de forma concisa.
3. TOOLS: Use as ferramentas disponíveis para executar ações.
"""

AUDIO_PROMPT = (
    "Transcreva este áudio exatamente e, em seguida, execute o comando solicitado "
    "ou responda à pergunta. Se for um comando de criação (tarefa/gasto), execute a tool."
)

IMAGE_PROMPT = (
    "Analise esta imagem (recibo, nota fiscal ou anotação). Se ela indicar um gasto, "
    "ganho ou tarefa, execute a tool correspondente."
)

NO_CARDS = "Nenhum cartão cadastrado."
NO_TASKS = "Nenhuma tarefa."
NO_TRANSACTIONS = "Nenhuma transação."


def format_full_date(now: datetime) -> str:
    """'domingo, 18 de outubro de 2026'."""
    return (
        f"{WEEKDAY_NAMES[now.weekday()]}, {now.day} de "
        f"{MONTH_NAMES[now.month - 1]} de {now.year}"
    )


def summarize_cards(store: DomainStore) -> str:
    return "\n".join(f"- {c.name} (Final {c.last_digits})" for c in store.cards) or NO_CARDS


def summarize_tasks(store: DomainStore, limit: int) -> str:
    lines = []
    for task in store.tasks[:limit]:
        mark = "X" if task.completed else " "
        when = task.date.isoformat() if task.date else "sem data"
        lines.append(f"- [{mark}] {task.title} ({when})")
    return "\n".join(lines) or NO_TASKS


def summarize_transactions(store: DomainStore, limit: int) -> str:
    lines = [
        f"- {t.name}: {format_brl(t.amount)} ({t.type.value})"
        for t in store.transactions[:limit]
    ]
    return "\n".join(lines) or NO_TRANSACTIONS


def build_system_instruction(store: DomainStore, now: datetime) -> str:
    """Instrucción de sistema con el snapshot actual, acotado a lo más reciente."""
    settings = get_settings()
    return SYSTEM_PROMPT_TEMPLATE.format(
        full_date=format_full_date(now),
        iso_date=now.date().isoformat(),
        time=time_label(now),
        cards=summarize_cards(store),
        tasks=summarize_tasks(store, settings.context_task_limit),
        transactions=summarize_transactions(store, settings.context_transaction_limit),
    )


def image_prompt(caption: str | None = None) -> str:
    if caption and caption.strip():
        return f"{IMAGE_PROMPT}\nLegenda do usuário: {caption.strip()}"
    return IMAGE_PROMPT
