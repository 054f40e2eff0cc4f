from fastapi import Request

from llm_checkpoint.services import (
    CheckpointServices,
    CommitReconciler,
    SnapshotLifecycleManager,
)


def get_services(request: Request) -> CheckpointServices:
    return request.app.state.services


# Route handlers depend on these getters so tests can override them
def get_lifecycle_manager(request: Request) -> SnapshotLifecycleManager:
    return get_services(request).lifecycle_manager


def get_reconciler(request: Request) -> CommitReconciler:
    return get_services(request).reconciler
