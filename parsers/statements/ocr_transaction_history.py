from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any


FORMAT_A = "FORMAT_A"  # date + time opens the block, no year
FORMAT_B = "FORMAT_B"  # date + year closes the block

UNKNOWN_MERCHANT = "Unknown Transaction"
DEFAULT_CATEGORY = "Uncategorized"
DEFAULT_ACCOUNT_ID = "default"

_HEADER_SCAN_LINES = 5

_MONTHS_EN_ABBR: tuple[str, ...] = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)

# High-frequency OCR misreads of month tokens (keys are lower-cased).
_MONTH_OCR_FIXES: dict[str, str] = {
    "5ep": "Sep",
    "0ct": "Oct",
    "1an": "Jan",
}

# Ex: "23 Oct, 14:32" / "lI Nov 09:05"
_DATE_START_RE = re.compile(r"\b(\d{1,2}|[lI]{1,2})\s+([A-Za-z]{3})[.,]?\s+(\d{2}:\d{2})\b")

# Ex: "5 Sep 2024" / "05ep 2024"
_DATE_END_RE = re.compile(r"\b(\d{1,2})\s*([A-Za-z0-9]{3})\s+(\d{4})\b")

# Ex: "23 Oct 25 - 21 Nov 25" (statement period header)
_HEADER_DATE_RE = re.compile(r"\d{1,2}\s+[A-Za-z]{3}\s+(\d{2,4})\b(?!:)")

# Ex: "-RM6.50", "- RM 12.00", "RM1,234.56", "R M 3.00"
_AMOUNT_RE = re.compile(r"(-?)\s*(?:RM|R\sM)?\s?(\d[\d,]*\.\d{2})(?!\d)", re.IGNORECASE)

_NOISE_RE = re.compile(r"points|DuitNow|Payment", re.IGNORECASE)

# Start pattern is checked first: a line that looks like both is a block opener.
_LAYOUT_PRIORITY: tuple[tuple[str, re.Pattern[str]], ...] = (
    (FORMAT_A, _DATE_START_RE),
    (FORMAT_B, _DATE_END_RE),
)


def normalize_text(text: str) -> str:
    """Normaliza o texto vindo do OCR preservando quebras de linha."""
    if not text:
        return ""

    text = text.replace("\u00a0", " ").replace("\xa0", " ")
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"[ \t]{2,}", " ", text)

    return "\n".join(ln.strip() for ln in text.split("\n"))


def split_lines(text: str) -> list[str]:
    return [ln for ln in normalize_text(text).split("\n") if ln]


@dataclass(frozen=True)
class DateLineMatch:
    layout: str  # FORMAT_A | FORMAT_B
    day: str
    month: str
    year: int | None


def match_date_line(line: str) -> DateLineMatch | None:
    """Classifies a line as a block opener (Format A), a block closer (Format B) or neither."""

    for layout, pattern in _LAYOUT_PRIORITY:
        m = pattern.search(line)
        if not m:
            continue
        year = int(m.group(3)) if layout == FORMAT_B else None
        return DateLineMatch(layout=layout, day=m.group(1), month=m.group(2), year=year)
    return None


def looks_like_ocr_statement(text: str) -> bool:
    return any(match_date_line(ln) is not None for ln in split_lines(text))


def infer_statement_year(lines: list[str], reference_year: int | None = None) -> tuple[int, bool]:
    """Returns (year, found_in_header).

    Only the first few lines are scanned, looking for the statement period
    header (e.g. "23 Oct 25 - 21 Nov 25").
    """

    for line in lines[:_HEADER_SCAN_LINES]:
        m = _HEADER_DATE_RE.search(line)
        if m:
            y = int(m.group(1))
            return (2000 + y if y < 100 else y), True

    if reference_year is None:
        reference_year = date.today().year
    return reference_year, False


def normalize_day_token(token: str) -> str:
    return (token or "").replace("l", "1").replace("I", "1").replace("O", "0")


def normalize_month_token(token: str) -> str:
    token = token or ""
    return _MONTH_OCR_FIXES.get(token.lower(), token)


def month_index(token: str) -> int | None:
    try:
        return _MONTHS_EN_ABBR.index(token)
    except ValueError:
        return None


def resolve_date(day: int, month_idx: int | None, year: int) -> date | None:
    """Builds the calendar date, rolling day overflow into the adjacent month."""

    if month_idx is None or not 0 <= month_idx <= 11:
        return None
    try:
        return date(year, month_idx + 1, 1) + timedelta(days=day - 1)
    except (ValueError, OverflowError):
        return None


def _parse_amount(value: str) -> Decimal | None:
    try:
        return Decimal(value.replace(",", "")).quantize(Decimal("0.01"))
    except InvalidOperation:
        return None


def extract_amount(line: str) -> tuple[Decimal | None, bool, str]:
    """Returns (amount, is_negative, line_without_amount) for the first amount token in the line."""

    m = _AMOUNT_RE.search(line or "")
    if not m:
        return None, False, line

    amount = _parse_amount(m.group(2))
    if amount is None:
        return None, False, line

    rest = (line[: m.start()] + line[m.end() :]).strip()
    return amount, m.group(1) == "-", rest


def is_noise_line(line: str) -> bool:
    if not line or not line.strip():
        return True
    return bool(_NOISE_RE.search(line))


@dataclass
class Block:
    lines: list[str]
    layout: str  # FORMAT_A | FORMAT_B
    date_match: DateLineMatch | None


def segment_blocks(lines: list[str]) -> tuple[list[Block], list[str]]:
    """Groups lines into transaction blocks.

    Returns (blocks, tail) where tail holds trailing lines that never became a block.
    """

    blocks: list[Block] = []
    buffer: list[str] = []

    for line in lines:
        m = match_date_line(line)

        if m is not None and m.layout == FORMAT_A:
            if buffer:
                first = match_date_line(buffer[0])
                opener = first if first is not None and first.layout == FORMAT_A else None
                blocks.append(Block(lines=buffer, layout=FORMAT_A, date_match=opener))
            buffer = [line]
            continue

        buffer.append(line)
        if m is not None:
            blocks.append(Block(lines=buffer, layout=FORMAT_B, date_match=m))
            buffer = []

    if buffer:
        first = match_date_line(buffer[0])
        if first is not None and first.layout == FORMAT_A:
            blocks.append(Block(lines=buffer, layout=FORMAT_A, date_match=first))
            buffer = []

    return blocks, buffer


@dataclass(frozen=True)
class ParsedTx:
    date: date
    merchant: str
    amount: Decimal
    type: str  # Income | Expense
    category: str = DEFAULT_CATEGORY
    accountId: str = DEFAULT_ACCOUNT_ID

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "merchant": self.merchant,
            "amount": float(self.amount),
            "type": self.type,
            "category": self.category,
            "accountId": self.accountId,
        }


@dataclass(frozen=True)
class RejectedBlock:
    lines: tuple[str, ...]
    layout: str | None
    reason: str  # missing_date | unknown_month | invalid_date | missing_amount | unterminated_block

    def to_dict(self) -> dict[str, Any]:
        return {"lines": list(self.lines), "layout": self.layout, "reason": self.reason}


@dataclass
class ParseResult:
    transactions: list[ParsedTx] = field(default_factory=list)
    rejected: list[RejectedBlock] = field(default_factory=list)
    year: int | None = None
    yearSource: str | None = None  # header | reference


def _resolve_block_date(block: Block, header_year: int) -> tuple[date | None, str | None]:
    m = block.date_match
    if m is None:
        return None, "missing_date"

    idx = month_index(normalize_month_token(m.month))
    if idx is None:
        return None, "unknown_month"

    day = int(normalize_day_token(m.day))
    year = m.year if block.layout == FORMAT_B and m.year is not None else header_year
    resolved = resolve_date(day, idx, year)
    if resolved is None:
        return None, "invalid_date"
    return resolved, None


def _build_transaction(block: Block, tx_date: date) -> ParsedTx | None:
    amount: Decimal | None = None
    negative = False
    merchant_parts: list[str] = []

    for line in block.lines:
        if match_date_line(line) is not None:
            continue

        if amount is None:
            value, is_negative, rest = extract_amount(line)
            if value is not None:
                amount, negative = value, is_negative
                if rest:
                    merchant_parts.append(rest)
                continue

        if is_noise_line(line):
            continue
        merchant_parts.append(line.strip())

    if amount is None:
        return None

    merchant = " ".join(merchant_parts).strip() or UNKNOWN_MERCHANT
    return ParsedTx(
        date=tx_date,
        merchant=merchant,
        amount=amount,
        type="Expense" if negative else "Income",
    )


def parse_transactions(text: str, *, reference_year: int | None = None) -> ParseResult:
    lines = split_lines(text)
    year, from_header = infer_statement_year(lines, reference_year)
    result = ParseResult(year=year, yearSource="header" if from_header else "reference")

    blocks, tail = segment_blocks(lines)
    for block in blocks:
        tx_date, reason = _resolve_block_date(block, year)
        if tx_date is None:
            result.rejected.append(RejectedBlock(lines=tuple(block.lines), layout=block.layout, reason=reason or "missing_date"))
            continue

        tx = _build_transaction(block, tx_date)
        if tx is None:
            result.rejected.append(RejectedBlock(lines=tuple(block.lines), layout=block.layout, reason="missing_amount"))
            continue
        result.transactions.append(tx)

    if tail:
        result.rejected.append(RejectedBlock(lines=tuple(tail), layout=None, reason="unterminated_block"))

    return result


def parse_transaction_text(text: str, *, reference_year: int | None = None) -> list[ParsedTx]:
    return parse_transactions(text, reference_year=reference_year).transactions


def parse_ocr_statement(raw_text: str, *, reference_year: int | None = None) -> tuple[dict[str, Any], list[str], dict[str, Any]]:
    """Parse do texto de histórico de transações reconhecido via OCR. Retorna (result, warnings, debug)."""

    warnings: list[str] = []
    debug: dict[str, Any] = {}

    parsed = parse_transactions(raw_text, reference_year=reference_year)

    if parsed.yearSource != "header":
        warnings.append("header_year_not_found")
    warnings.extend(r.reason for r in parsed.rejected)

    lines = split_lines(raw_text)
    debug.update(
        {
            "year": parsed.year,
            "yearSource": parsed.yearSource,
            "lineCount": len(lines),
            "blockCount": len(parsed.transactions) + sum(1 for r in parsed.rejected if r.layout is not None),
            "txCount": len(parsed.transactions),
            "rejectedCount": len(parsed.rejected),
        }
    )

    result: dict[str, Any] = {
        "source": "OCR_STATEMENT",
        "year": parsed.year,
        "transactions": [t.to_dict() for t in parsed.transactions],
        "rejected": [r.to_dict() for r in parsed.rejected],
    }

    if not result["transactions"]:
        result["reason"] = "UNSUPPORTED_LAYOUT"

    return result, warnings, debug
