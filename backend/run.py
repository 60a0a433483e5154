"""
JensenGPT Backend Runner
Run with: python run.py
"""

import uvicorn
from jensengpt.config import settings


if __name__ == "__main__":
    print(f"""
    JensenGPT chat backend

    Starting server at http://{settings.HOST}:{settings.PORT}
    Model: {settings.DEFAULT_MODEL_ID} via {settings.LLM_API_BASE}

    API Documentation: http://localhost:{settings.PORT}/docs
    """)

    uvicorn.run(
        "jensengpt.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
