"""
Tools del asistente.

Cuatro operaciones fijas que el modelo puede invocar. Cada tool ejecuta
una mutación del DomainStore y devuelve un texto legible con el resultado;
ese texto se muestra en el chat y se devuelve al modelo.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Coroutine

from synclife.domain.entities import (
    TODAY_SENTINEL,
    PaymentMethod,
    Task,
    Transaction,
    TransactionType,
)
from synclife.domain.store import DomainStore, MutationResult
from synclife.utils.dates import now_local, parse_iso_date, time_label
from synclife.utils.errors import UnknownToolError, ValidationError
from synclife.utils.text import camel_to_snake, format_brl

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Erro ao executar ação."
SYNC_PENDING_SUFFIX = " (sincronização pendente)"


@dataclass
class ToolResult:
    """Resultado de la ejecución de un tool."""
    success: bool
    message: str
    error: str | None = None


@dataclass
class Tool:
    """Definición de un tool."""
    name: str
    description: str
    parameters: dict  # Schema en el formato de function declarations de Gemini
    function: Callable[..., Coroutine[Any, Any, ToolResult]]

    def declaration(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }


class ToolRegistry:
    """
    Registro de los tools disponibles para el dispatcher.

    Uso:
        registry = ToolRegistry(store)
        result = await registry.execute("createTask", {"title": "Comprar pão"})
    """

    def __init__(self, store: DomainStore, clock: Callable[[], datetime] = now_local):
        self.store = store
        self.clock = clock
        self._tools: dict[str, Tool] = {}
        self._register_finance_tools()
        self._register_task_tools()

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def get_declarations(self) -> list[dict[str, Any]]:
        """Function declarations de todos los tools, para el modelo."""
        return [tool.declaration() for tool in self._tools.values()]

    async def execute(self, tool_name: str, args: dict[str, Any] | None = None) -> ToolResult:
        """Ejecuta un tool por nombre. Nunca lanza: los errores vuelven como texto."""
        if tool_name not in self._tools:
            error = UnknownToolError(tool_name)
            logger.warning(str(error))
            return ToolResult(
                success=False,
                message=f'Ação desconhecida: "{tool_name}".',
                error=str(error),
            )

        kwargs = {camel_to_snake(key): value for key, value in (args or {}).items()}
        tool = self._tools[tool_name]
        try:
            result = await tool.function(**kwargs)
            logger.info(f"Tool {tool_name} ejecutado: success={result.success}")
            return result
        except Exception as e:
            logger.exception(f"Error ejecutando tool {tool_name}")
            return ToolResult(success=False, message=GENERIC_FAILURE, error=str(e))

    @staticmethod
    def _with_sync_status(message: str, result: MutationResult) -> ToolResult:
        if not result.confirmed:
            message += SYNC_PENDING_SUFFIX
        return ToolResult(success=True, message=message)

    # ==================== FINANCE TOOLS ====================

    def _register_finance_tools(self) -> None:
        self._tools["createTransaction"] = Tool(
            name="createTransaction",
            description=(
                "Registrar uma nova transação financeira (gasto ou ganho). Se o usuário "
                "disser que usou cartão, defina paymentMethod como 'credit_card'."
            ),
            parameters={
                "type": "OBJECT",
                "properties": {
                    "name": {"type": "STRING", "description": "Nome breve (ex: Café, Uber)"},
                    "amount": {"type": "NUMBER", "description": "Valor numérico"},
                    "type": {
                        "type": "STRING",
                        "enum": ["expense", "income"],
                        "description": "Tipo",
                    },
                    "paymentMethod": {
                        "type": "STRING",
                        "enum": ["pix", "credit_card", "cash"],
                        "description": "Meio de pagamento.",
                    },
                    "cardKeyword": {
                        "type": "STRING",
                        "description": "Nome do cartão se for crédito (ex: Nubank, Inter).",
                    },
                    "categoryIcon": {
                        "type": "STRING",
                        "description": (
                            "Ícone Material Symbols sugerido pelo contexto "
                            "(ex: restaurant, directions_car, shopping_bag)."
                        ),
                    },
                },
                "required": ["name", "amount", "type"],
            },
            function=self._create_transaction,
        )

        self._tools["deleteTransaction"] = Tool(
            name="deleteTransaction",
            description="Remover uma transação existente pelo nome aproximado.",
            parameters={
                "type": "OBJECT",
                "properties": {
                    "keyword": {
                        "type": "STRING",
                        "description": "Nome ou palavra-chave para encontrar a transação.",
                    },
                },
                "required": ["keyword"],
            },
            function=self._delete_transaction,
        )

    async def _create_transaction(
        self,
        name: str | None = None,
        amount: Any = None,
        type: str | None = None,
        payment_method: str | None = None,
        card_keyword: str | None = None,
        category_icon: str | None = None,
        **_: Any,
    ) -> ToolResult:
        try:
            tx_type = TransactionType(type or "")
        except ValueError:
            raise ValidationError(f"Tipo de transação inválido: {type}", field="type")

        method = PaymentMethod(payment_method or PaymentMethod.PIX.value)
        card_id = None
        if method == PaymentMethod.CREDIT_CARD:
            card = self.store.find_card(card_keyword) if card_keyword else None
            if card is None and self.store.cards:
                card = self.store.cards[0]
            if card is None:
                # Sin tarjetas registradas no puede ser crédito
                logger.info("Pago con tarjeta sin tarjetas registradas, se usa pix")
                method = PaymentMethod.PIX
            else:
                card_id = card.id

        is_expense = tx_type == TransactionType.EXPENSE
        result = await self.store.add_transaction(
            Transaction(
                name=name or "",
                amount=amount if amount is not None else Decimal("0"),
                date=TODAY_SENTINEL,
                type=tx_type,
                icon=category_icon or ("shopping_bag" if is_expense else "attach_money"),
                color="orange" if is_expense else "green",
                payment_method=method,
                card_id=card_id,
            )
        )

        transaction = result.entity
        method_text = " (Cartão)" if method == PaymentMethod.CREDIT_CARD else ""
        message = (
            f"Transação salva: {transaction.name} - {format_brl(transaction.amount)}{method_text}"
        )
        return self._with_sync_status(message, result)

    async def _delete_transaction(self, keyword: str | None = None, **_: Any) -> ToolResult:
        target = self.store.find_transaction(keyword or "")
        if target is None:
            return ToolResult(
                success=False,
                message=f'Não encontrei transação com nome "{keyword}".',
            )

        result = await self.store.delete_transaction(target.id)
        return self._with_sync_status(f"Transação removida: {target.name}", result)

    # ==================== TASK TOOLS ====================

    def _register_task_tools(self) -> None:
        self._tools["createTask"] = Tool(
            name="createTask",
            description="Criar uma nova tarefa. Deduza o ícone da categoria baseado no título.",
            parameters={
                "type": "OBJECT",
                "properties": {
                    "title": {"type": "STRING", "description": "Título da tarefa"},
                    "category": {
                        "type": "STRING",
                        "description": "Categoria (ex: Trabalho, Pessoal, Saúde)",
                    },
                    "categoryIcon": {
                        "type": "STRING",
                        "description": "Ícone Material Symbols sugerido (ex: work, home, fitness_center).",
                    },
                    "date": {"type": "STRING", "description": "Data no formato YYYY-MM-DD exata."},
                },
                "required": ["title"],
            },
            function=self._create_task,
        )

        self._tools["updateTask"] = Tool(
            name="updateTask",
            description="Atualizar status ou deletar uma tarefa existente.",
            parameters={
                "type": "OBJECT",
                "properties": {
                    "keyword": {
                        "type": "STRING",
                        "description": "Palavra-chave do título da tarefa",
                    },
                    "action": {
                        "type": "STRING",
                        "enum": ["complete", "delete", "reschedule"],
                        "description": "Ação a tomar",
                    },
                    "newDate": {
                        "type": "STRING",
                        "description": "Nova data YYYY-MM-DD se a ação for reschedule",
                    },
                },
                "required": ["keyword", "action"],
            },
            function=self._update_task,
        )

    async def _create_task(
        self,
        title: str | None = None,
        category: str | None = None,
        category_icon: str | None = None,
        date: str | None = None,
        **_: Any,
    ) -> ToolResult:
        now = self.clock()
        task_date = now.date()
        if date:
            task_date = parse_iso_date(date)
            if task_date is None:
                raise ValidationError(f"Data inválida: {date}", field="date")

        result = await self.store.add_task(
            Task(
                title=title or "",
                category=category or "Geral",
                category_icon=category_icon or "check_circle",
                time=time_label(now),
                date=task_date,
            )
        )
        return self._with_sync_status(f"Tarefa criada: {result.entity.title}", result)

    async def _update_task(
        self,
        keyword: str | None = None,
        action: str | None = None,
        new_date: str | None = None,
        **_: Any,
    ) -> ToolResult:
        target = self.store.find_task(keyword or "")
        if target is None:
            return ToolResult(success=False, message=f'Não encontrei a tarefa "{keyword}".')

        if action == "delete":
            result = await self.store.delete_task(target.id)
            return self._with_sync_status(f"Tarefa apagada: {target.title}", result)

        if action == "complete":
            result = await self.store.update_task(replace(target, completed=True))
            return self._with_sync_status(f"Tarefa concluída: {target.title}", result)

        if action == "reschedule":
            parsed = parse_iso_date(new_date) if new_date else None
            if parsed is None:
                return ToolResult(
                    success=False,
                    message=f'Preciso de uma nova data para reagendar "{target.title}".',
                )
            result = await self.store.update_task(replace(target, date=parsed))
            return self._with_sync_status(
                f"Tarefa reagendada: {target.title} para {parsed.isoformat()}", result
            )

        raise ValidationError(f"Ação inválida: {action}", field="action")
