"""
Workflows package for plantops.

This package contains the monthly compliance and operator ranking workflows.
"""
from .orchestrator import run_compliance_workflow, run_ranking_workflow

__all__ = ['run_compliance_workflow', 'run_ranking_workflow']
