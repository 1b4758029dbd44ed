import logging
import uuid
from typing import Iterable, List

from django.core.validators import MinValueValidator
from django.db import DatabaseError, models, transaction
from django.utils.translation import gettext_lazy as _

from .ai_engine.context import Candidate

logger = logging.getLogger(__name__)


class EventManager(models.Manager):
    """Load/save collaborator the recommendation engine reads its snapshot from."""

    def pending(self):
        return self.filter(is_completed=False)

    def load_candidates(self) -> List[Candidate]:
        return [event.to_candidate() for event in self.pending().order_by("created_at")]

    def save_candidates(self, candidates: Iterable[Candidate]) -> bool:
        """
        Upsert candidates by id, preserving name, deadline, effort and
        difficulty. Returns False if the write failed.
        """
        try:
            with transaction.atomic():
                for candidate in candidates:
                    self.update_or_create(
                        id=candidate.id,
                        defaults={
                            "name": candidate.name,
                            "deadline": candidate.deadline,
                            "estimated_hours": candidate.estimated_hours,
                            "difficulty": candidate.difficulty or "",
                        },
                    )
        except DatabaseError as e:
            logger.error(f"EventManager: failed to save candidates: {e}")
            return False
        return True


class Event(models.Model):
    """
    A pending or completed task the user might start.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255, verbose_name=_("name"))

    deadline = models.DateTimeField(
        null=True, blank=True,
        verbose_name=_("deadline"),
        help_text=_("When the event is due.")
    )

    estimated_hours = models.FloatField(
        null=True, blank=True,
        validators=[MinValueValidator(0.0)],
        verbose_name=_("estimated hours"),
        help_text=_("Expected effort in hours (e.g. 0.5, 1, 2).")
    )

    # Free text; "Easy"/"Medium"/"Hard" or anything the heuristics can classify
    difficulty = models.CharField(
        max_length=64,
        blank=True,
        verbose_name=_("difficulty"),
    )

    # Status fields
    is_completed = models.BooleanField(default=False, verbose_name=_("is completed"))
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("updated at"))

    objects = EventManager()

    class Meta:
        verbose_name = _("Event")
        verbose_name_plural = _("Events")
        # Active events first, then by earliest deadline
        ordering = ["is_completed", "deadline", "created_at"]

    def __str__(self):
        return f"Event: {self.name}"

    def to_candidate(self) -> Candidate:
        return Candidate(
            id=self.id,
            name=self.name,
            deadline=self.deadline,
            estimated_hours=self.estimated_hours,
            difficulty=self.difficulty or None,
        )
