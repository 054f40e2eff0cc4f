import os

import uvicorn

from llm_checkpoint.main import app

if __name__ == "__main__":
    host = os.getenv("CHECKPOINT_HOST", "127.0.0.1")
    port = int(os.getenv("CHECKPOINT_PORT", "8005"))

    print(f"Starting LLM Checkpoint API on {host}:{port}")
    uvicorn.run(app, host=host, port=port)
