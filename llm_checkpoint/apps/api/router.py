from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from llm_checkpoint.dependencies import get_lifecycle_manager, get_reconciler
from llm_checkpoint.errors import (
    CheckpointError,
    DuplicateKey,
    ExternalToolFailure,
    NotFound,
)
from llm_checkpoint.schemas import (
    BulkOperationResult,
    ExportRequest,
    ExportResponse,
    SaveRequest,
    SaveResponse,
    Snapshot,
    TrackedFile,
)
from llm_checkpoint.services import CommitReconciler, SnapshotLifecycleManager

router = APIRouter(prefix="/checkpoint", tags=["checkpoint"])


def _http_error(action: str, error: CheckpointError) -> HTTPException:
    """Translate a store error into the HTTP status callers expect."""
    if isinstance(error, NotFound):
        status_code = 404
    elif isinstance(error, DuplicateKey):
        status_code = 409
    elif isinstance(error, ExternalToolFailure):
        status_code = 502
    else:
        status_code = 500
    return HTTPException(status_code=status_code, detail=f"{action} failed: {error}")


@router.get("/health")
async def checkpoint_health_check():
    """Simple health check for checkpoint endpoints."""
    return {"status": "checkpoint endpoints available"}


@router.post("/save", response_model=SaveResponse)
async def save_version(
    request: SaveRequest,
    manager: SnapshotLifecycleManager = Depends(get_lifecycle_manager),
):
    """Save the current content of a file if the change is significant."""
    if not request.file_path.strip():
        raise HTTPException(status_code=400, detail="file_path cannot be empty")

    try:
        snapshot = await manager.save_current(request.file_path, request.content)
        tracked = await manager.get_file(request.file_path)
    except CheckpointError as e:
        raise _http_error("Save", e)

    if snapshot is None:
        message = "No significant change; version not saved"
    else:
        message = f"Version {snapshot.version_number} saved"
    return SaveResponse(
        admitted=snapshot is not None, file=tracked, snapshot=snapshot, message=message
    )


@router.post("/save-events", status_code=202)
async def queue_save_event(
    request: SaveRequest,
    manager: SnapshotLifecycleManager = Depends(get_lifecycle_manager),
):
    """Queue a save event; events are applied in arrival order."""
    await manager.enqueue_save(request.file_path, request.content)
    return {"queued": True, "file_path": request.file_path}


@router.get("/files", response_model=List[TrackedFile])
async def list_files(manager: SnapshotLifecycleManager = Depends(get_lifecycle_manager)):
    try:
        return await manager.list_files()
    except CheckpointError as e:
        raise _http_error("Listing files", e)


@router.get("/files/{file_id}/snapshots", response_model=List[Snapshot])
async def list_snapshots(
    file_id: int,
    limit: Optional[int] = Query(default=None, ge=1),
    manager: SnapshotLifecycleManager = Depends(get_lifecycle_manager),
):
    try:
        return await manager.list_snapshots(file_id, limit)
    except CheckpointError as e:
        raise _http_error("Listing versions", e)


@router.get("/snapshots/{snapshot_id}", response_model=Snapshot)
async def get_snapshot(
    snapshot_id: int,
    manager: SnapshotLifecycleManager = Depends(get_lifecycle_manager),
):
    try:
        return await manager.get_snapshot(snapshot_id)
    except CheckpointError as e:
        raise _http_error("Reading version", e)


@router.delete("/snapshots/{snapshot_id}", response_model=Dict[str, Any])
async def delete_snapshot(
    snapshot_id: int,
    manager: SnapshotLifecycleManager = Depends(get_lifecycle_manager),
):
    try:
        await manager.delete_one(snapshot_id)
    except CheckpointError as e:
        raise _http_error("Delete", e)
    return {"deleted": snapshot_id, "message": "Version deleted"}


@router.post("/snapshots/{snapshot_id}/export", response_model=ExportResponse)
async def export_snapshot(
    snapshot_id: int,
    request: Optional[ExportRequest] = None,
    manager: SnapshotLifecycleManager = Depends(get_lifecycle_manager),
):
    """Overwrite the history context file with one version."""
    destination = request.destination if request else None
    try:
        snapshot = await manager.get_snapshot(snapshot_id)
        target = await manager.export_snapshot_to_path(snapshot, destination)
    except CheckpointError as e:
        raise _http_error("Export", e)
    return ExportResponse(
        snapshot_id=snapshot_id,
        destination=str(target),
        message=f"Version exported successfully to {target}",
    )


@router.post("/snapshots/{snapshot_id}/append", response_model=ExportResponse)
async def append_snapshot(
    snapshot_id: int,
    request: Optional[ExportRequest] = None,
    manager: SnapshotLifecycleManager = Depends(get_lifecycle_manager),
):
    """Append one version to the history context file."""
    destination = request.destination if request else None
    try:
        snapshot = await manager.get_snapshot(snapshot_id)
        target = await manager.append_snapshot_to_path(snapshot, destination)
    except CheckpointError as e:
        raise _http_error("Append", e)
    return ExportResponse(
        snapshot_id=snapshot_id,
        destination=str(target),
        message=f"Version appended to {target}",
    )


@router.post("/snapshots/{snapshot_id}/restore", response_model=Dict[str, Any])
async def restore_snapshot(
    snapshot_id: int,
    manager: SnapshotLifecycleManager = Depends(get_lifecycle_manager),
):
    try:
        target = await manager.restore_snapshot(snapshot_id)
    except CheckpointError as e:
        raise _http_error("Restore", e)
    return {"restored": snapshot_id, "path": str(target)}


@router.post("/quick-clean", response_model=BulkOperationResult)
async def quick_clean(manager: SnapshotLifecycleManager = Depends(get_lifecycle_manager)):
    """Keep only the latest version of every file."""
    try:
        return await manager.quick_clean()
    except CheckpointError as e:
        raise _http_error("Quick clean", e)


@router.post("/clear-all", response_model=BulkOperationResult)
async def clear_all(
    remove_files: bool = False,
    manager: SnapshotLifecycleManager = Depends(get_lifecycle_manager),
):
    """Delete every stored version, optionally dropping the file records too."""
    try:
        return await manager.clear_all(remove_files=remove_files)
    except CheckpointError as e:
        raise _http_error("Clear all", e)


@router.post("/reconcile", response_model=Dict[str, Any])
async def reconcile(reconciler: CommitReconciler = Depends(get_reconciler)):
    """Run one commit reconciliation pass now."""
    results = await reconciler.reconcile_now()
    if results is None:
        return {"skipped": True, "results": []}
    return {
        "skipped": False,
        "results": [result.model_dump() for result in results],
    }
