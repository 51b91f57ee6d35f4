"""Core HR module — Profile and EmployeeLifeEvent models and profile lookups."""

from leave_workflow.core_hr.models import EmployeeLifeEvent, Profile

__all__ = ["Profile", "EmployeeLifeEvent"]
