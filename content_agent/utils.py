import os
import re
import json
import html2text
import datetime as dt
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from jsonschema import validate, Draft202012Validator
from jsonschema.exceptions import ValidationError

PACKAGE_DIR = Path(__file__).resolve().parent

# ---------- Time helpers ----------

def now_utc():
    return dt.datetime.now(dt.timezone.utc)

def parse_datetime_safe(raw):
    """Parse ISO-8601 / RFC 2822 timestamps into aware UTC datetimes, None on failure."""
    if not raw:
        return None
    if isinstance(raw, dt.datetime):
        parsed = raw
    else:
        value = str(raw).strip()
        parsed = None
        try:
            parsed = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            for fmt in ("%a, %d %b %Y %H:%M:%S %z", "%Y-%m-%d %H:%M:%S%z"):
                try:
                    parsed = dt.datetime.strptime(value, fmt)
                    break
                except ValueError:
                    continue
        if parsed is None:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed.astimezone(dt.timezone.utc)

# ---------- Text helpers ----------

def plain_text(html_or_text: str) -> str:
    """Strip markup entirely and collapse whitespace (no markdown residue)."""
    h = html2text.HTML2Text()
    h.ignore_links = True
    h.ignore_images = True
    h.ignore_emphasis = True
    h.body_width = 0
    text = h.handle(html_or_text or "")
    text = re.sub(r"^\s*#+\s*", "", text, flags=re.MULTILINE)
    text = re.sub(r"^\s*[*+-]\s+", "", text, flags=re.MULTILINE)
    return re.sub(r"\s+", " ", text).strip()

# ---------- Config loading & validation ----------

def load_json_resource(relative_path: str):
    return json.loads((PACKAGE_DIR / relative_path).read_text(encoding="utf-8"))

def validate_config(cfg: dict):
    schema = load_json_resource("schemas/config.schema.json")
    try:
        validate(instance=cfg, schema=schema, cls=Draft202012Validator)
    except ValidationError as e:
        raise ValueError(f"Config validation error: {e.message} at {list(e.path)}") from e

# ---------- Logging ----------

_LOGGER_INITIALIZED = False

class JsonFormatter(logging.Formatter):
    def format(self, record):
        payload = {
            "ts": dt.datetime.fromtimestamp(record.created, dt.timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)

def _build_logger():
    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    level = os.getenv("LOG_LEVEL", "INFO").upper()
    log_dir = os.getenv("LOG_DIR", "logs")
    json_mode = os.getenv("LOG_JSON", "false").lower() == "true"

    os.makedirs(log_dir, exist_ok=True)
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, level, logging.INFO))

    ch = logging.StreamHandler()
    ch.setLevel(logger.level)

    fh = TimedRotatingFileHandler(os.path.join(log_dir, "content-agent.log"), when="D", backupCount=7, encoding="utf-8")
    fh.setLevel(logger.level)

    if json_mode:
        fmt = JsonFormatter()
    else:
        fmt = logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")

    ch.setFormatter(fmt)
    fh.setFormatter(fmt)
    logger.addHandler(ch)
    logger.addHandler(fh)

    _LOGGER_INITIALIZED = True

def get_logger(name: str = None) -> logging.Logger:
    _build_logger()
    return logging.getLogger(name if name else __name__)

# ---------- Secret redaction ----------

SECRET_ENV_KEYS = [
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "GHOST_ADMIN_API_KEY",
    "TAVILY_API_KEY",
    "GOOGLE_CLIENT_SECRET",
]

def redact_secrets(s: str) -> str:
    """Redact sensitive information from strings for safe logging."""
    if not s:
        return s

    redacted = s
    for k in SECRET_ENV_KEYS:
        v = os.getenv(k)
        if v and len(v) > 3:
            redacted = redacted.replace(v, "***")

    redacted = re.sub(r"sk-ant-[A-Za-z0-9_\-]{8,}", "sk-ant-***", redacted)
    redacted = re.sub(r"tvly-[A-Za-z0-9_\-]{8,}", "tvly-***", redacted)
    redacted = re.sub(r"(?i)(authorization[\"']?\s*[:=]\s*[\"']?ghost\s+)[A-Za-z0-9._\-]+", r"\1***", redacted)
    redacted = re.sub(r"(?i)\"api_key\"\s*:\s*\"[^\"]+\"", '"api_key": "***"', redacted)

    return redacted
