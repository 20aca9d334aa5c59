# --- imports (top of clinic_backend/app.py) ---
import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

# Resolve paths early so env vars are available before importing the app modules
BASE_DIR = Path(__file__).resolve().parent
ENV_PATH = BASE_DIR / ".env"

load_dotenv(ENV_PATH)

from clinic_backend.middleware.tracing import TraceIdFilter, TracingMiddleware
from clinic_backend.routes import notes_routes
from clinic_backend.services.nlp_rules import get_rules
from clinic_backend.utils.app import env_str
from clinic_backend.utils.exceptions import (
    handle_http_exception,
    handle_unhandled_exception,
    handle_validation_exception,
)

# --- app & router setup ---
app = FastAPI(title="Clinic Notes Backend", version="0.1.0")


# --- logging setup ---
class JsonFormatter(logging.Formatter):
    def format(self, record):  # type: ignore[override]
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "function": record.funcName,
            "trace_id": getattr(record, "trace_id", ""),
        }
        if isinstance(record.msg, dict):
            payload.update(record.msg)
        else:
            payload["message"] = record.getMessage()
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging() -> logging.Logger:
    logger = logging.getLogger("clinic")
    level = (env_str("LOG_LEVEL", "INFO") or "INFO").upper()
    logger.setLevel(getattr(logging, level, logging.INFO))
    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        handler.addFilter(TraceIdFilter())
        logger.addHandler(handler)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    return logger


logger = configure_logging()

app.add_middleware(TracingMiddleware)
app.add_exception_handler(StarletteHTTPException, handle_http_exception)
app.add_exception_handler(RequestValidationError, handle_validation_exception)
app.add_exception_handler(Exception, handle_unhandled_exception)


@app.on_event("startup")
def _load_rule_tables():
    # Fail at boot, not on the first note, when the rule file is bad
    rules = get_rules()
    logger.info({
        "function": "startup",
        "diagnosis_rules": len(rules.diagnoses),
        "term_groups": len(rules.entities.groups),
    })


app.include_router(notes_routes.router)
