"""OpenAI-backed classification collaborator.

Public API:
    - :class:`OpenAIClassifier`

Merchants are keyed by :func:`~statement_ingest.mapping_rules.extract_pattern`
so repeated merchants (``"스타벅스 판교점"``, ``"스타벅스 강남"``) are sent to
the model once per process. Uncached items go out in batches through the
Responses API with a strict JSON schema; only HTTP 429/5xx errors are retried.
Any terminal failure raises :class:`ClassificationUnavailable` so the caller
can abort the file instead of persisting half-classified rows.

No side effects occur at import time (no client creation, no environment
reads).
"""

from __future__ import annotations

import random
import threading
import time
from collections.abc import Callable, Mapping, Sequence
from types import MappingProxyType
from typing import Any

from openai import OpenAI
from openai.types.responses import ResponseTextConfigParam
from pydantic import BaseModel, ConfigDict

from .categories import CLASSIFIABLE_CATEGORIES_BY_KIND, TransactionKind, default_category
from .errors import ClassificationUnavailable
from .logging_setup import get_logger
from .mapping_rules import extract_pattern
from .models import ClassifyInput

# ---- Tunables (private) ------------------------------------------------------

_MAX_ATTEMPTS: int = 3
_BACKOFF_SCHEDULE_SEC: tuple[float, ...] = (0.5, 2.0)
_JITTER_PCT: float = 0.20

DEFAULT_MODEL = "gpt-5"
DEFAULT_BATCH_SIZE = 50

_logger = get_logger("statement_ingest.classifier")

CATEGORY_DESCRIPTIONS = MappingProxyType(
    {
        "식료품": "마트, 슈퍼, 편의점에서 구매한 식재료, 생필품",
        "외식/커피": "음식점, 카페, 배달음식, 커피, 음료",
        "쇼핑": "의류, 잡화, 온라인쇼핑, 백화점",
        "관리비": "아파트 관리비, 공과금, 가스비, 전기요금",
        "통신/교통": "휴대폰요금, 인터넷, 교통비, 주유, 주차, 택시, 기차, SRT, KTX",
        "육아": "어린이집, 유치원, 학원, 아이용품, 장난감, 아이 병원비",
        "병원/미용": "병원, 약국, 의료비, 미용실, 피부관리, 네일, 화장품",
        "기존할부": "할부 결제 (자동차, 가전제품 등)",
        "대출이자": "대출이자, 카드이자, 금융비용",
        "양육비": "양육비 이체, 양육 관련 고정 지출",
        "세금": "국세, 지방세, 자동차세, 재산세, 주민세, 교통범칙금",
        "기타": "어디에도 해당하지 않거나 확실하지 않은 지출",
        "급여": "월급, 정기 급여, 회사에서 받는 급여",
        "상여": "보너스, 인센티브, 명절 상여금",
        "정부/환급": "정부 지원금, 세금 환급, 연말정산 환급, 육아수당",
        "강연/도서": "강연료, 원고료, 인세, 컨설팅비, 부업 수입",
        "금융소득": "이자, 배당금, 투자 수익, 예금 이자",
        "기타소득": "중고 판매, 경품, 기타 수입",
    }
)


class ClassifiedItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    index: int
    category: str


class ClassificationResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    results: list[ClassifiedItem]


# ---- Internal helpers --------------------------------------------------------


def _create_client() -> OpenAI:
    return OpenAI()


def _is_retryable(exc: BaseException) -> bool:
    """Return True only for HTTP 429 and 5xx errors."""

    sc = getattr(exc, "status_code", None)
    return isinstance(sc, int) and (sc == 429 or 500 <= sc < 600)


def _sleep_backoff(attempt_no: int) -> None:
    if attempt_no - 1 < len(_BACKOFF_SCHEDULE_SEC):
        base = _BACKOFF_SCHEDULE_SEC[attempt_no - 1]
    else:
        base = _BACKOFF_SCHEDULE_SEC[-1]
    jitter = base * _JITTER_PCT
    delay = base + random.uniform(-jitter, jitter)
    time.sleep(max(0.0, delay))


def build_instructions(kind: TransactionKind) -> str:
    allowed = CLASSIFIABLE_CATEGORIES_BY_KIND[kind]
    category_list = "\n".join(f"- {c}: {CATEGORY_DESCRIPTIONS.get(c, c)}" for c in allowed)
    subject = "소득" if kind is TransactionKind.INCOME else "지출"
    return (
        "당신은 한국 가계부 카테고리 분류 전문가입니다.\n"
        f"주어진 {subject} 거래의 가맹점명(또는 적요)과 금액을 보고 카테고리를 고르세요.\n\n"
        f"사용 가능한 카테고리:\n{category_list}\n\n"
        "규칙:\n"
        "1. 가맹점명의 키워드로 가장 적합한 카테고리를 선택합니다.\n"
        f"2. 확실하지 않으면 '{default_category(kind)}'로 분류합니다.\n"
        "3. 입력의 모든 index에 대해 정확히 하나의 결과를 돌려줍니다."
    )


def build_user_content(items: Sequence[ClassifyInput]) -> str:
    lines = "\n".join(f'{i.row_index}. "{i.merchant}" ({i.amount:,}원)' for i in items)
    return f"다음 거래 내역들을 분류해주세요:\n\n{lines}"


def build_text_config(kind: TransactionKind) -> ResponseTextConfigParam:
    schema: dict[str, Any] = {
        "type": "object",
        "properties": {
            "results": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "index": {"type": "integer"},
                        "category": {
                            "type": "string",
                            "enum": list(CLASSIFIABLE_CATEGORIES_BY_KIND[kind]),
                        },
                    },
                    "required": ["index", "category"],
                    "additionalProperties": False,
                },
            }
        },
        "required": ["results"],
        "additionalProperties": False,
    }
    return {
        "format": {
            "type": "json_schema",
            "name": "transaction_categories",
            "schema": schema,
            "strict": True,
        }
    }


def _batches(items: Sequence[ClassifyInput], size: int) -> list[Sequence[ClassifyInput]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


class OpenAIClassifier:
    """Classification collaborator calling the OpenAI Responses API.

    ``client_factory`` defaults to ``OpenAI()`` (reads ``OPENAI_API_KEY``);
    tests inject a stub. The pattern cache is shared by the expense and
    income calls, which may run on different threads.
    """

    def __init__(
        self,
        *,
        model: str = DEFAULT_MODEL,
        batch_size: int = DEFAULT_BATCH_SIZE,
        client_factory: Callable[[], Any] = _create_client,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be a positive integer")
        self.model = model
        self.batch_size = batch_size
        self._client_factory = client_factory
        self._cache: dict[tuple[TransactionKind, str], str] = {}
        self._lock = threading.Lock()

    def classify(
        self, inputs: Sequence[ClassifyInput], kind: TransactionKind
    ) -> Mapping[int, str]:
        results: dict[int, str] = {}
        uncached: list[ClassifyInput] = []
        patterns = {i.row_index: extract_pattern(i.merchant) for i in inputs}

        with self._lock:
            for item in inputs:
                hit = self._cache.get((kind, patterns[item.row_index]))
                if hit is not None:
                    results[item.row_index] = hit
                else:
                    uncached.append(item)
        if results:
            _logger.info("classifier:cache_hits kind=%s count=%d", kind, len(results))
        if not uncached:
            return results

        try:
            client = self._client_factory()
        except Exception as e:  # noqa: BLE001 - missing key or bad client config
            _logger.error("classifier:client_failed error=%s", e.__class__.__name__)
            raise ClassificationUnavailable(f"classification client unavailable: {e}") from e
        for batch_no, batch in enumerate(_batches(uncached, self.batch_size)):
            classified = self._classify_batch(client, batch, kind, batch_no)
            with self._lock:
                for idx, category in classified.items():
                    results[idx] = category
                    self._cache.setdefault((kind, patterns[idx]), category)
        return results

    def _classify_batch(
        self,
        client: Any,
        batch: Sequence[ClassifyInput],
        kind: TransactionKind,
        batch_no: int,
    ) -> dict[int, str]:
        instructions = build_instructions(kind)
        user_content = build_user_content(batch)
        text_cfg = build_text_config(kind)
        allowed = CLASSIFIABLE_CATEGORIES_BY_KIND[kind]
        requested = {i.row_index for i in batch}

        attempt = 1
        while True:
            t0 = time.perf_counter()
            try:
                resp = client.responses.create(
                    model=self.model,
                    instructions=instructions,
                    input=user_content,
                    text=text_cfg,
                )
                parsed = ClassificationResponse.model_validate_json(resp.output_text or "")
            except Exception as e:  # noqa: BLE001
                dt_ms = (time.perf_counter() - t0) * 1000.0
                if attempt >= _MAX_ATTEMPTS or not _is_retryable(e):
                    _logger.error(
                        (
                            "classifier:batch_failed_terminal kind=%s batch=%d size=%d "
                            "latency_ms=%.2f error=%s"
                        ),
                        kind,
                        batch_no,
                        len(batch),
                        dt_ms,
                        e.__class__.__name__,
                    )
                    raise ClassificationUnavailable(
                        f"classification failed for {kind} batch {batch_no} "
                        f"(size={len(batch)}): {e}"
                    ) from e
                _logger.warning(
                    (
                        "classifier:batch_retry kind=%s batch=%d size=%d latency_ms=%.2f "
                        "error=%s attempt=%d"
                    ),
                    kind,
                    batch_no,
                    len(batch),
                    dt_ms,
                    e.__class__.__name__,
                    attempt,
                )
                _sleep_backoff(attempt)
                attempt += 1
                continue

            out: dict[int, str] = {}
            for item in parsed.results:
                if item.index not in requested:
                    continue
                out[item.index] = item.category if item.category in allowed else default_category(kind)
            _logger.info(
                "classifier:batch_done kind=%s batch=%d size=%d classified=%d latency_ms=%.2f",
                kind,
                batch_no,
                len(batch),
                len(out),
                (time.perf_counter() - t0) * 1000.0,
            )
            return out


__all__ = [
    "CATEGORY_DESCRIPTIONS",
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_MODEL",
    "OpenAIClassifier",
    "build_instructions",
    "build_text_config",
    "build_user_content",
]
