import uvicorn
import os

application_path = os.path.dirname(os.path.abspath(__file__))

if __name__ == "__main__":
    # reload only when DEV_RELOAD=true
    is_dev = os.getenv("DEV_RELOAD", "false").lower() == "true"

    uvicorn.run(
        "delivery_planner.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=is_dev,
        app_dir=application_path,
        log_level="info"
    )
