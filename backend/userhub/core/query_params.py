# 쿼리 문자열 -> MongoDB 필터/정렬 변환기
# - URL 쿼리 문자열(예: "name=kim&age>=20&sort=-createdAt")을
#   Mongo 필터 dict와 정렬 목록으로 바꿉니다.
# - api-query-params 표기법을 따릅니다.
#
# 지원 표기:
#   key=value        -> {"key": value}
#   key!=value       -> {"key": {"$ne": value}}
#   key>v, key>=v    -> {"key": {"$gt": v}}, {"key": {"$gte": v}}
#   key<v, key<=v    -> {"key": {"$lt": v}}, {"key": {"$lte": v}}
#   key=a,b          -> {"key": {"$in": [a, b]}}
#   key!=a,b         -> {"key": {"$nin": [a, b]}}
#   key / !key       -> {"key": {"$exists": True/False}}
#   key=/abc/i       -> {"key": {"$regex": "abc", "$options": "i"}}
#   sort=-a,b  skip=10  limit=5  fields=a,-b  filter={"json": 1}

import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import unquote_plus

from bson import ObjectId

from .exceptions import UserServiceError


class InvalidQueryError(UserServiceError):
    """쿼리 문자열의 예약 키(skip, limit, filter) 값이 잘못되었을 때 발생"""
    def __init__(self, key: str, value: str):
        self.key = key
        self.value = value
        super().__init__(f"Invalid query parameter '{key}': {value}")


@dataclass
class QuerySpec:
    filter: Dict[str, Any] = field(default_factory=dict)
    sort: List[Tuple[str, int]] = field(default_factory=list)
    skip: Optional[int] = None
    limit: Optional[int] = None
    projection: Dict[str, int] = field(default_factory=dict)


_PARAM_RE = re.compile(r"^(!?)([^><!=]*)([><]=?|!?=|)(.*)$", re.DOTALL)
# 앞자리 0이 있는 값(전화번호 등)은 숫자로 바꾸지 않습니다.
_NUMBER_RE = re.compile(r"^-?(0|[1-9]\d*)(\.\d+)?$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}(T\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?)?$")
_REGEX_RE = re.compile(r"^/(.*)/([imsx]*)$", re.DOTALL)

_COMPARISON_OPS = {">": "$gt", ">=": "$gte", "<": "$lt", "<=": "$lte"}
_RESERVED_KEYS = ("sort", "skip", "limit", "fields", "filter")


def _parse_date(value: str) -> Any:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value


def _cast(key: str, value: str) -> Any:
    if value.startswith("string(") and value.endswith(")"):
        return value[len("string("):-1]
    if value.startswith("date(") and value.endswith(")"):
        return _parse_date(value[len("date("):-1])
    if value == "true":
        return True
    if value == "false":
        return False
    if value == "null":
        return None
    regex = _REGEX_RE.match(value)
    if regex:
        return {"$regex": regex.group(1), "$options": regex.group(2)}
    if key == "_id" and ObjectId.is_valid(value):
        return ObjectId(value)
    if _NUMBER_RE.match(value):
        return float(value) if "." in value else int(value)
    if _DATE_RE.match(value):
        return _parse_date(value)
    return value


def _is_regex(value: Any) -> bool:
    return isinstance(value, dict) and "$regex" in value


def _condition(key: str, op: str, raw: str) -> Any:
    if op == "=":
        if "," in raw and not _REGEX_RE.match(raw):
            return {"$in": [_cast(key, v) for v in raw.split(",")]}
        return _cast(key, raw)
    if op == "!=":
        if "," in raw and not _REGEX_RE.match(raw):
            return {"$nin": [_cast(key, v) for v in raw.split(",")]}
        value = _cast(key, raw)
        return {"$not": value} if _is_regex(value) else {"$ne": value}
    return {_COMPARISON_OPS[op]: _cast(key, raw)}


def _merge(query_filter: Dict[str, Any], key: str, condition: Any) -> None:
    # 같은 키에 대한 비교 연산자들은 하나로 합칩니다 (예: age>=18&age<30)
    current = query_filter.get(key)
    if (
        isinstance(current, dict)
        and isinstance(condition, dict)
        and all(k.startswith("$") for k in current)
        and all(k.startswith("$") for k in condition)
        and not _is_regex(condition)
    ):
        current.update(condition)
    else:
        query_filter[key] = condition


def _parse_int(key: str, value: str) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise InvalidQueryError(key, value)
    if parsed < 0:
        raise InvalidQueryError(key, value)
    return parsed


def _parse_sort(value: str) -> List[Tuple[str, int]]:
    sort = []
    for token in value.split(","):
        token = token.strip()
        if not token:
            continue
        if token[0] == "-":
            sort.append((token[1:], -1))
        elif token[0] == "+":
            sort.append((token[1:], 1))
        else:
            sort.append((token, 1))
    return sort


def _parse_projection(value: str) -> Dict[str, int]:
    projection = {}
    for token in value.split(","):
        token = token.strip()
        if not token:
            continue
        if token[0] == "-":
            projection[token[1:]] = 0
        else:
            projection[token.lstrip("+")] = 1
    return projection


def parse_query(query_string: Optional[str]) -> QuerySpec:
    """
    URL 쿼리 문자열을 QuerySpec(filter, sort, skip, limit, projection)으로 변환합니다.

    Args:
        query_string: "?"가 붙어 있어도 되는 원본 쿼리 문자열. None이나 ""이면 빈 스펙.

    Returns:
        QuerySpec: filter는 그대로 Mongo find()에 넘길 수 있는 dict입니다.
            UserService.list는 filter와 sort만 쓰고 skip, limit, projection은 무시합니다
            (페이지 위치는 current/pageSize로 정함).

    Raises:
        InvalidQueryError: skip/limit이 정수가 아니거나 filter가 JSON 객체가 아닐 때
    """
    spec = QuerySpec()
    if not query_string:
        return spec

    for chunk in query_string.lstrip("?").split("&"):
        if not chunk:
            continue
        param = unquote_plus(chunk)
        match = _PARAM_RE.match(param)
        prefix, key, op, raw = match.groups()
        key = key.strip()
        if not key:
            continue

        if op == "=" and key in _RESERVED_KEYS:
            if key == "sort":
                spec.sort = _parse_sort(raw)
            elif key == "skip":
                spec.skip = _parse_int(key, raw)
            elif key == "limit":
                spec.limit = _parse_int(key, raw)
            elif key == "fields":
                spec.projection = _parse_projection(raw)
            else:
                try:
                    extra = json.loads(raw)
                except ValueError:
                    raise InvalidQueryError(key, raw)
                if not isinstance(extra, dict):
                    raise InvalidQueryError(key, raw)
                spec.filter.update(extra)
            continue

        if not op:
            _merge(spec.filter, key, {"$exists": not prefix})
            continue

        _merge(spec.filter, key, _condition(key, op, raw))

    return spec
