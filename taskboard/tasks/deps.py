from fastapi import HTTPException, Request

from taskboard.tasks.store import TaskStore

def get_task_store(request: Request) -> TaskStore:
    store: TaskStore = request.app.state.task_store
    if store.loading:
        raise HTTPException(status_code=503, detail="tasks loading")
    return store
