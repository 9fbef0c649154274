"""
Task Views - Filtrado, orden y agrupación de tareas para las vistas día/semana/mes.
"""

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Any

from synclife.domain.entities import Project, Task, TaskPriority


class TaskView(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


class TaskSort(str, Enum):
    PRIORITY = "priority"
    TIME = "time"
    DEADLINE = "deadline"


@dataclass
class ProjectGroup:
    """Tareas de un proyecto; `project` None agrupa las tareas sin proyecto."""

    project: Project | None
    tasks: list[Task]

    def to_dict(self) -> dict[str, Any]:
        return {
            "project": self.project.to_dict() if self.project else None,
            "tasks": [t.to_dict() for t in self.tasks],
        }


def week_bounds(anchor: date) -> tuple[date, date]:
    """Lunes y domingo de la semana de `anchor`."""
    monday = anchor - timedelta(days=anchor.weekday())
    return monday, monday + timedelta(days=6)


def filter_tasks(tasks: list[Task], view: TaskView | str, anchor: date) -> list[Task]:
    """Tareas con fecha que caen en la vista. `all` ignora la fecha pero no las sin fecha."""
    view = TaskView(view)
    dated = [t for t in tasks if t.date is not None]

    if view == TaskView.ALL:
        return dated
    if view == TaskView.DAY:
        return [t for t in dated if t.date == anchor]
    if view == TaskView.WEEK:
        start, end = week_bounds(anchor)
        return [t for t in dated if start <= t.date <= end]
    return [t for t in dated if (t.date.year, t.date.month) == (anchor.year, anchor.month)]


def _moment(task: Task) -> tuple[date, str]:
    return task.date or date.min, task.time or "00:00"


def sort_tasks(tasks: list[Task], sort_by: TaskSort | str = TaskSort.TIME) -> list[Task]:
    """
    Pendientes primero.

    `priority` ordena alta -> baja con "sin prioridad" al final y desempata
    por fecha y hora; `time` y `deadline` ordenan por fecha y hora.
    """
    sort_by = TaskSort(sort_by)

    def key(task: Task) -> tuple:
        if sort_by == TaskSort.PRIORITY:
            rank = task.priority if task.priority != TaskPriority.NONE else 99
            return task.completed, rank, _moment(task)
        return task.completed, _moment(task)

    return sorted(tasks, key=key)


def group_by_project(tasks: list[Task], projects: list[Project]) -> list[ProjectGroup]:
    """Grupos en el orden de los proyectos; las tareas huérfanas van al final."""
    groups = []
    known = set()
    for project in projects:
        known.add(project.id)
        project_tasks = [t for t in tasks if t.project_id == project.id]
        if project_tasks:
            groups.append(ProjectGroup(project=project, tasks=project_tasks))

    orphans = [t for t in tasks if t.project_id not in known]
    if orphans:
        groups.append(ProjectGroup(project=None, tasks=orphans))
    return groups


def shift_anchor(anchor: date, view: TaskView | str, direction: int) -> date:
    """Mueve la fecha de referencia un día, una semana o un mes."""
    view = TaskView(view)
    step = 1 if direction >= 0 else -1

    if view == TaskView.DAY:
        return anchor + timedelta(days=step)
    if view == TaskView.WEEK:
        return anchor + timedelta(days=7 * step)
    if view == TaskView.MONTH:
        month_index = anchor.month - 1 + step
        year = anchor.year + month_index // 12
        month = month_index % 12 + 1
        day = min(anchor.day, calendar.monthrange(year, month)[1])
        return anchor.replace(year=year, month=month, day=day)
    return anchor
