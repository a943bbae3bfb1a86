"""Interview and idea documents kept in Google Drive folders."""

from __future__ import annotations

import re
import socket
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional

from googleapiclient.errors import HttpError
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from content_agent.models import Interview, SourceDocument
from content_agent.utils import get_logger, parse_datetime_safe

logger = get_logger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/documents.readonly",
    "https://www.googleapis.com/auth/drive.readonly",
]
TOKEN_URI = "https://oauth2.googleapis.com/token"
DOC_MIME_TYPE = "application/vnd.google-apps.document"


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, HttpError):
        status = getattr(exc.resp, "status", None)
        return status == 429 or (status is not None and int(status) >= 500)
    return isinstance(exc, (socket.timeout, TimeoutError, ConnectionError))


def extract_text(content: Iterable[Dict[str, Any]]) -> str:
    """Flatten a Docs ``body.content`` structure: paragraph text runs, then table cells row by row."""
    parts: List[str] = []
    for element in content or []:
        paragraph = element.get("paragraph")
        table = element.get("table")
        if paragraph:
            for item in paragraph.get("elements") or []:
                run = item.get("textRun") or {}
                if run.get("content"):
                    parts.append(run["content"])
        elif table:
            for row in table.get("tableRows") or []:
                for cell in row.get("tableCells") or []:
                    parts.append(extract_text(cell.get("content") or []))
                parts.append("\n")
    return "".join(parts)


def find_snippets(text: str, keywords: Iterable[str], context_chars: int = 250, limit: int = 3) -> List[str]:
    """Return up to ``limit`` non-overlapping windows of ``text`` around keyword hits."""
    terms = [k.strip().lower() for k in keywords if k and k.strip()]
    if not text or not terms:
        return []
    pattern = re.compile("|".join(re.escape(t) for t in terms), re.IGNORECASE)
    snippets: List[str] = []
    last_end = -1
    for m in pattern.finditer(text):
        if m.start() < last_end:
            continue
        start = max(0, m.start() - context_chars)
        end = min(len(text), m.end() + context_chars)
        snippet = re.sub(r"\s+", " ", text[start:end]).strip()
        snippets.append(("..." if start > 0 else "") + snippet + ("..." if end < len(text) else ""))
        last_end = end
        if len(snippets) >= limit:
            break
    return snippets


class GoogleDocsStore:
    """Read-only access to Google Docs via the Drive v3 and Docs v1 APIs.

    ``googleapiclient`` services sit on ``httplib2``, which is not thread-safe,
    so each worker thread builds its own pair of services on first use.
    """

    def __init__(
        self,
        client_id: str = "",
        client_secret: str = "",
        refresh_token: str = "",
        retries: int = 3,
        timeout: float = 30.0,
        service_factory: Optional[Callable[[str, str], Any]] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.timeout = timeout
        self._service_factory = service_factory or self._build_service
        self._local = threading.local()
        self._call = retry(
            retry=retry_if_exception(_is_transient),
            stop=stop_after_attempt(max(1, retries)),
            wait=wait_exponential(multiplier=0.5, max=8),
            reraise=True,
        )(self._execute)

    # ---------- clients ----------

    def _build_service(self, api: str, version: str):
        import google_auth_httplib2
        import httplib2
        from google.oauth2.credentials import Credentials
        from googleapiclient.discovery import build

        creds = Credentials(
            None,
            refresh_token=self.refresh_token,
            token_uri=TOKEN_URI,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=SCOPES,
        )
        http = google_auth_httplib2.AuthorizedHttp(creds, http=httplib2.Http(timeout=self.timeout))
        return build(api, version, http=http, cache_discovery=False)

    def _service(self, api: str, version: str):
        key = f"{api}_{version}"
        service = getattr(self._local, key, None)
        if service is None:
            service = self._service_factory(api, version)
            setattr(self._local, key, service)
        return service

    @property
    def drive(self):
        return self._service("drive", "v3")

    @property
    def docs(self):
        return self._service("docs", "v1")

    @staticmethod
    def _execute(request):
        return request.execute()

    # ---------- documents ----------

    def list_documents(self, folder_id: str) -> List[SourceDocument]:
        """Google Docs directly inside ``folder_id``, newest first."""
        query = f"'{folder_id}' in parents and mimeType='{DOC_MIME_TYPE}' and trashed=false"
        docs: List[SourceDocument] = []
        page_token = None
        while True:
            resp = self._call(
                self.drive.files().list(
                    q=query,
                    fields="nextPageToken, files(id, name, createdTime)",
                    orderBy="createdTime desc",
                    pageSize=100,
                    pageToken=page_token,
                )
            )
            for f in resp.get("files") or []:
                docs.append(
                    SourceDocument(
                        id=f["id"],
                        title=f.get("name") or "",
                        created_at=parse_datetime_safe(f.get("createdTime")),
                    )
                )
            page_token = resp.get("nextPageToken")
            if not page_token:
                break
        logger.info("documents: listed folder=%s count=%d", folder_id, len(docs))
        return docs

    def get_document_text(self, document_id: str) -> str:
        doc = self._call(self.docs.documents().get(documentId=document_id))
        return extract_text(((doc or {}).get("body") or {}).get("content") or [])

    def get_document(self, document_id: str) -> SourceDocument:
        meta = self._call(self.drive.files().get(fileId=document_id, fields="id, name, createdTime"))
        return SourceDocument(
            id=meta.get("id") or document_id,
            title=meta.get("name") or "",
            content=self.get_document_text(document_id),
            created_at=parse_datetime_safe(meta.get("createdTime")),
        )

    # ---------- interviews ----------

    def list_interviews(self, folder_id: str) -> List[Interview]:
        return [Interview.from_document(d) for d in self.list_documents(folder_id)]

    def get_interview(self, document_id: str) -> Interview:
        return Interview.from_document(self.get_document(document_id))

    def all_interviews_with_content(self, folder_id: str) -> List[Interview]:
        interviews = []
        for interview in self.list_interviews(folder_id):
            interviews.append(interview.model_copy(update={"content": self.get_document_text(interview.id)}))
        return interviews

    def search_interviews(self, folder_id: str, keywords: Iterable[str], snippets_per_interview: int = 3) -> List[Dict[str, Any]]:
        """Keyword hits across every interview in the folder, grouped per vendor."""
        keywords = list(keywords)
        matches = []
        for interview in self.all_interviews_with_content(folder_id):
            snippets = find_snippets(interview.content, keywords, limit=snippets_per_interview)
            if snippets:
                matches.append(
                    {
                        "id": interview.id,
                        "title": interview.title,
                        "vendor_name": interview.vendor_name,
                        "vendor_type": interview.vendor_type,
                        "snippets": snippets,
                    }
                )
        logger.info("documents: search keywords=%s matched=%d", keywords, len(matches))
        return matches
