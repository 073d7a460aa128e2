"""Ticket Validation Domain Entities"""

from src.service.ticket_validation.domain.entity.event_timing_entity import EventTiming
from src.service.ticket_validation.domain.entity.ticket_state_entity import TicketState
from src.service.ticket_validation.domain.entity.validation_session_entity import (
    ValidationSession,
)

__all__ = ['EventTiming', 'TicketState', 'ValidationSession']
