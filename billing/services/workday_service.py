"""
Workday Service - marking and unmarking the days worked on a project.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, FrozenSet, List, Optional, Tuple

from django.db import transaction

from billing.models import Project, Workday
from billing.services.rate_calculator import normalize_workday_date
from billing.validation.errors import NotFoundError

logger = logging.getLogger(__name__)


class WorkdayService:
    """Handles workday selection for projects."""

    @staticmethod
    def get_project(project_id: int) -> Project:
        try:
            return Project.objects.get(pk=project_id)
        except Project.DoesNotExist:
            raise NotFoundError(f"Project {project_id} not found")

    @staticmethod
    @transaction.atomic
    def toggle_workday(project_id: int, day: Any) -> Tuple[Optional[Workday], bool]:
        """
        Unmark ``day`` if it is marked, mark it otherwise.

        Returns ``(workday, True)`` when a workday was created and
        ``(None, False)`` when the date was removed.
        """
        project = WorkdayService.get_project(project_id)
        day = normalize_workday_date(day)

        existing = Workday.objects.filter(project=project, date=day)
        if existing.exists():
            count, _ = existing.delete()
            logger.info(f"Removed {count} workday(s) on {day} from project {project.pk}")
            return None, False

        workday = Workday.objects.create(project=project, date=day)
        logger.info(f"Added workday {day} to project {project.pk}")
        return workday, True

    @staticmethod
    @transaction.atomic
    def add_workday(project_id: int, day: Any) -> Tuple[Workday, bool]:
        project = WorkdayService.get_project(project_id)
        day = normalize_workday_date(day)

        workday = Workday.objects.filter(project=project, date=day).order_by("id").first()
        if workday is not None:
            return workday, False
        return Workday.objects.create(project=project, date=day), True

    @staticmethod
    def remove_workday(workday_id: int) -> None:
        deleted, _ = Workday.objects.filter(pk=workday_id).delete()
        if not deleted:
            raise NotFoundError(f"Workday {workday_id} not found")

    @staticmethod
    def list_workdays(project_id: int) -> List[Workday]:
        project = WorkdayService.get_project(project_id)
        return list(project.workdays.order_by("date", "id"))

    @staticmethod
    def selected_dates(project_id: int) -> FrozenSet[date]:
        project = WorkdayService.get_project(project_id)
        return frozenset(project.workdays.values_list("date", flat=True))
