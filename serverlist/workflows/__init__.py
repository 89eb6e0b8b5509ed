from .base import WorkflowContext, WorkflowResult, WorkflowStatus
from .setup import SetupWorkflow
from .update import UpdateWorkflow
from .delete import DeleteWorkflow

__all__ = [
    'WorkflowContext', 'WorkflowResult', 'WorkflowStatus',
    'SetupWorkflow', 'UpdateWorkflow', 'DeleteWorkflow'
]
