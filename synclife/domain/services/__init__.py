"""
Domain Services - Funciones puras sobre el snapshot del DomainStore.

Contabilidad de faturas, notificaciones, resumen financiero y vistas de tareas.
"""

from synclife.domain.services.invoices import (
    CardSummary,
    DueStatus,
    available_credit,
    classify_due_date,
    invoice_status,
    open_invoice,
    summarize_cards,
)
from synclife.domain.services.notifications import (
    Notification,
    NotificationKind,
    Severity,
    derive_notifications,
    run_notification_action,
)
from synclife.domain.services.finance_summary import (
    ChartPeriod,
    ChartPoint,
    cash_balance,
    spending_chart,
)
from synclife.domain.services.task_views import (
    ProjectGroup,
    TaskSort,
    TaskView,
    filter_tasks,
    group_by_project,
    shift_anchor,
    sort_tasks,
)

__all__ = [
    "CardSummary",
    "DueStatus",
    "available_credit",
    "classify_due_date",
    "invoice_status",
    "open_invoice",
    "summarize_cards",
    "Notification",
    "NotificationKind",
    "Severity",
    "derive_notifications",
    "run_notification_action",
    "ChartPeriod",
    "ChartPoint",
    "cash_balance",
    "spending_chart",
    "ProjectGroup",
    "TaskSort",
    "TaskView",
    "filter_tasks",
    "group_by_project",
    "shift_anchor",
    "sort_tasks",
]
