"""
Rendering of spreadsheet number format codes.

Covers the codes flat-file data usually carries: General, zero-padded and
grouped integers, fixed decimals, percentages, scientific notation, literal
and currency text, positive/negative/zero sections, and date and time codes.
Fractions fall back to General.
"""
import calendar
import math
from datetime import datetime, date, time
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Tuple

from openpyxl.utils.datetime import from_excel

GENERAL = "General"

DIGIT_PLACEHOLDERS = "0#?"
DATE_CODES = "ymdhs"


def split_sections(fmt: str) -> List[str]:
    """Split a format code on the ';' section separators that are not quoted or escaped."""
    sections = []
    current = []
    quoted = False
    escaped = False
    bracketed = False
    for ch in fmt:
        if escaped:
            escaped = False
        elif ch == "\\" and not quoted:
            escaped = True
        elif ch == '"':
            quoted = not quoted
        elif ch == "[" and not quoted:
            bracketed = True
        elif ch == "]" and not quoted:
            bracketed = False
        elif ch == ";" and not quoted and not bracketed:
            sections.append("".join(current))
            current = []
            continue
        current.append(ch)
    sections.append("".join(current))
    return sections


def tokenize(section: str) -> List[Tuple[str, str]]:
    """
    Split one format section into ("lit", text) and ("code", char) tokens.

    Quoted text, backslash escapes, `_x` spacing and `[$sym-locale]` currency
    become literals. Fill characters (`*x`) and other bracket codes such as
    colors and conditions are dropped.
    """
    tokens = []
    i = 0
    while i < len(section):
        ch = section[i]
        if ch == '"':
            end = section.find('"', i + 1)
            if end == -1:
                end = len(section)
            tokens.append(("lit", section[i + 1:end]))
            i = end + 1
        elif ch == "\\":
            tokens.append(("lit", section[i + 1:i + 2]))
            i += 2
        elif ch == "_":
            tokens.append(("lit", " "))
            i += 2
        elif ch == "*":
            i += 2
        elif ch == "[":
            end = section.find("]", i)
            if end == -1:
                end = len(section)
            inner = section[i + 1:end]
            if inner.startswith("$"):
                symbol = inner[1:].split("-")[0]
                if symbol:
                    tokens.append(("lit", symbol))
            i = end + 1
        else:
            tokens.append(("code", ch))
            i += 1
    return tokens


def _codes(section: str) -> str:
    return "".join(text for kind, text in tokenize(section) if kind == "code")


def is_general(section: str) -> bool:
    return section.strip().lower() in ("", "general", "@")


def is_date_format(fmt: str) -> bool:
    section = split_sections(fmt or GENERAL)[0]
    if is_general(section):
        return False
    return any(ch in DATE_CODES for ch in _codes(section).lower())


def format_general(value) -> str:
    """Integral values without a decimal part, others with up to 10 significant digits."""
    if isinstance(value, int) or float(value).is_integer():
        return str(int(value))
    return format(value, ".10g")


def format_number(value, fmt: str) -> str:
    """
    Render a number the way a spreadsheet displays it with the given format code.

    Args:
        value: int or float cell value
        fmt: Number format code of the cell

    Returns:
        str: Display text
    """
    sections = split_sections(fmt or GENERAL)
    section = sections[0]
    negative = value < 0
    if negative and len(sections) > 1 and sections[1]:
        # The negative section carries its own sign, e.g. parentheses
        section, value, negative = sections[1], -value, False
    elif value == 0 and len(sections) > 2 and sections[2]:
        section = sections[2]

    if is_general(section):
        return format_general(value)

    codes = _codes(section)
    if any(ch in DATE_CODES for ch in codes.lower()) and "e+" not in codes.lower() and "e-" not in codes.lower():
        return format_date(from_excel(value), section)
    if not any(ch in DIGIT_PLACEHOLDERS for ch in codes):
        # Text-only section such as "zero" or "-"
        return "".join(text for _, text in tokenize(section))
    if "/" in codes:
        return ("-" if negative else "") + format_general(abs(value))

    text = _render_numeric(abs(value), tokenize(section))
    if negative and any(ch in "123456789" for ch in text):
        return "-" + text
    return text


def _classify(tokens: List[Tuple[str, str]]) -> List[Tuple[str, str]]:
    items = []
    i = 0
    while i < len(tokens):
        kind, ch = tokens[i]
        if kind == "lit":
            items.append(("lit", ch))
        elif ch in DIGIT_PLACEHOLDERS:
            items.append(("digit", ch))
        elif ch == ".":
            items.append(("point", ch))
        elif ch == ",":
            items.append(("comma", ch))
        elif ch == "%":
            items.append(("percent", ch))
        elif ch in "eE" and i + 1 < len(tokens) and tokens[i + 1] in (("code", "+"), ("code", "-")):
            items.append(("exp", tokens[i + 1][1]))
            i += 1
        else:
            items.append(("lit", ch))
        i += 1
    return items


def _render_numeric(value: float, tokens: List[Tuple[str, str]]) -> str:
    items = _classify(tokens)

    exp_at = next((i for i, (kind, _) in enumerate(items) if kind == "exp"), None)
    mantissa_items = items if exp_at is None else items[:exp_at]
    point_at = next((i for i, (kind, _) in enumerate(mantissa_items) if kind == "point"), len(mantissa_items))
    int_items = mantissa_items[:point_at]

    value *= 100 ** sum(1 for kind, _ in items if kind == "percent")

    # A comma between integer placeholders groups thousands, a trailing one scales by 1000
    grouping = False
    for i, (kind, _) in enumerate(int_items):
        if kind != "comma":
            continue
        if any(k == "digit" for k, _ in int_items[i + 1:]):
            grouping = True
        else:
            value /= 1000

    int_placeholders = [i for i, (kind, _) in enumerate(int_items) if kind == "digit"]
    dec_placeholders = [i for i, (kind, _) in enumerate(mantissa_items) if kind == "digit" and i > point_at]
    dec_count = len(dec_placeholders)

    exponent = 0
    if exp_at is not None:
        if value != 0:
            exponent = math.floor(math.log10(value))
            value /= 10 ** exponent
            if round(value, dec_count) >= 10:
                value /= 10
                exponent += 1

    rounded = Decimal(str(value)).quantize(Decimal(1).scaleb(-dec_count), rounding=ROUND_HALF_UP)
    int_str, _, dec_str = f"{rounded:f}".partition(".")
    if int_str == "0" and not any(int_items[i][1] == "0" for i in int_placeholders):
        int_str = ""

    rendered = {}

    # Integer digits
    if grouping:
        block = f"{int(int_str):,}" if int_str else ""
        for n, i in enumerate(int_placeholders):
            rendered[i] = block if n == 0 else ""
    elif int_placeholders:
        digits = list(int_str)
        for n, i in enumerate(reversed(int_placeholders)):
            placeholder = int_items[i][1]
            if n == len(int_placeholders) - 1:
                rendered[i] = "".join(digits) if digits else _empty_digit(placeholder)
            elif digits:
                rendered[i] = digits.pop()
            else:
                rendered[i] = _empty_digit(placeholder)

    # Decimal digits, trailing zeros dropped where the placeholder is optional
    dec_digits = list(dec_str)
    for n in range(dec_count - 1, -1, -1):
        placeholder = mantissa_items[dec_placeholders[n]][1]
        if dec_digits[n] == "0" and placeholder != "0" and all(
            rendered.get(dec_placeholders[k]) in ("", " ") for k in range(n + 1, dec_count)
        ):
            rendered[dec_placeholders[n]] = _empty_digit(placeholder)
        else:
            rendered[dec_placeholders[n]] = dec_digits[n]

    out = []
    for i, (kind, text) in enumerate(mantissa_items):
        if kind == "lit":
            out.append(text)
        elif kind == "digit":
            out.append(rendered.get(i, ""))
        elif kind == "point":
            if not int_placeholders:
                out.append(int_str)
            out.append(".")
        elif kind == "percent":
            out.append("%")

    if exp_at is not None:
        sign = "-" if exponent < 0 else ("+" if items[exp_at][1] == "+" else "")
        exp_digits = sum(1 for kind, _ in items[exp_at + 1:] if kind == "digit")
        out.append("E" + sign + str(abs(exponent)).zfill(exp_digits))
        out.extend(text for kind, text in items[exp_at + 1:] if kind in ("lit", "percent"))

    return "".join(out)


def _empty_digit(placeholder: str) -> str:
    return {"0": "0", "?": " "}.get(placeholder, "")


def _date_parts(section: str) -> List[Tuple[str, str]]:
    """Group a date section into ("lit", text) and (code, run) parts, e.g. ("m", "mm")."""
    tokens = tokenize(section)
    parts = []
    i = 0
    while i < len(tokens):
        kind, ch = tokens[i]
        if kind == "lit":
            parts.append(("lit", ch))
            i += 1
            continue
        ahead = "".join(text for _, text in tokens[i:i + 5])
        if ahead.lower() == "am/pm" and all(k == "code" for k, _ in tokens[i:i + 5]):
            parts.append(("ampm", ahead))
            i += 5
            continue
        ahead = "".join(text for _, text in tokens[i:i + 3])
        if ahead.lower() == "a/p" and all(k == "code" for k, _ in tokens[i:i + 3]):
            parts.append(("ap", ahead))
            i += 3
            continue
        lower = ch.lower()
        if lower in DATE_CODES:
            run = ch
            i += 1
            while i < len(tokens) and tokens[i][0] == "code" and tokens[i][1].lower() == lower:
                run += tokens[i][1]
                i += 1
            parts.append((lower, run))
            continue
        if ch == "." and parts and parts[-1][0] == "s":
            run = ""
            i += 1
            while i < len(tokens) and tokens[i] == ("code", "0"):
                run += "0"
                i += 1
            parts.append(("frac", run))
            continue
        parts.append(("lit", ch))
        i += 1
    return parts


def format_date(value, fmt: str) -> str:
    """
    Render a date, datetime or time with the given format code.

    Args:
        value: datetime, date or time cell value
        fmt: Number format code of the cell (date codes)

    Returns:
        str: Display text
    """
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime.combine(value, time(0, 0))
    else:
        moment = datetime.combine(date(1899, 12, 30), value)

    parts = _date_parts(split_sections(fmt)[0])
    twelve_hour = any(kind in ("ampm", "ap") for kind, _ in parts)

    # "m" means minutes right after an hour or right before a second
    codes = [i for i, (kind, _) in enumerate(parts) if kind in DATE_CODES]
    minutes = set()
    for n, i in enumerate(codes):
        if parts[i][0] != "m":
            continue
        before = parts[codes[n - 1]][0] if n > 0 else None
        after = parts[codes[n + 1]][0] if n + 1 < len(codes) else None
        if before == "h" or after == "s":
            minutes.add(i)

    out = []
    for i, (kind, run) in enumerate(parts):
        size = len(run)
        if kind == "lit":
            out.append(run)
        elif kind == "y":
            out.append(f"{moment.year:04d}" if size > 2 else f"{moment.year % 100:02d}")
        elif kind == "m" and i in minutes:
            out.append(f"{moment.minute:02d}" if size > 1 else str(moment.minute))
        elif kind == "m":
            if size >= 5:
                out.append(calendar.month_name[moment.month][0])
            elif size == 4:
                out.append(calendar.month_name[moment.month])
            elif size == 3:
                out.append(calendar.month_abbr[moment.month])
            else:
                out.append(f"{moment.month:02d}" if size == 2 else str(moment.month))
        elif kind == "d":
            if size >= 4:
                out.append(calendar.day_name[moment.weekday()])
            elif size == 3:
                out.append(calendar.day_abbr[moment.weekday()])
            else:
                out.append(f"{moment.day:02d}" if size == 2 else str(moment.day))
        elif kind == "h":
            hour = (moment.hour % 12 or 12) if twelve_hour else moment.hour
            out.append(f"{hour:02d}" if size > 1 else str(hour))
        elif kind == "s":
            out.append(f"{moment.second:02d}" if size > 1 else str(moment.second))
        elif kind == "frac":
            out.append("." + f"{moment.microsecond:06d}"[:len(run)] if run else ".")
        elif kind == "ampm":
            marker = "AM" if moment.hour < 12 else "PM"
            out.append(marker if run[0].isupper() else marker.lower())
        elif kind == "ap":
            marker = "A" if moment.hour < 12 else "P"
            out.append(marker if run[0].isupper() else marker.lower())
    return "".join(out)
