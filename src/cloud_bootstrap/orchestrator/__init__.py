"""Orchestration of reconcilers and dry-run planning."""

from cloud_bootstrap.orchestrator.orchestrator import (
    PROVISION_ORDER,
    BootstrapOrchestrator,
    ProvisionSummary,
    Step,
)
from cloud_bootstrap.orchestrator.planner import PlanReport, build_plan_report

__all__ = [
    "PROVISION_ORDER",
    "BootstrapOrchestrator",
    "ProvisionSummary",
    "Step",
    "PlanReport",
    "build_plan_report",
]
