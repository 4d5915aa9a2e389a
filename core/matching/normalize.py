"""
Normalizer - canonical tokens for job and profile fields.

This is the only place where string and number comparison ambiguity is
resolved. Everything downstream (the match engine, the server pipeline)
compares the tokens produced here and never re-normalizes.

Raw records arrive either as pydantic models (JobRecord, UserProfile) or as
plain mappings straight from the database / an API payload. Every helper in
this module accepts both and never raises.
"""

import math
import numbers
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Set

_WHITESPACE_RE = re.compile(r'\s+')
_NON_NUMERIC_RE = re.compile(r'[^0-9.\-]')
_MAILTO_RE = re.compile(r'^mailto:', re.IGNORECASE)

# Upstream onboarding occasionally stores the literal string "null"
NULL_SENTINEL = 'null'


def normalize_string(value: Any) -> str:
    """Trim, lowercase and collapse whitespace runs. None/empty -> ''."""
    if value is None or isinstance(value, bool):
        return ''
    text = value if isinstance(value, str) else str(value)
    return _WHITESPACE_RE.sub(' ', text.strip().lower())


def normalize_array_strings(values: Any) -> Set[str]:
    """Normalize a list or a comma-separated string into a set of tokens.

    Empty tokens are dropped. Anything that is neither a string nor an
    iterable collection yields an empty set.
    """
    if not values:
        return set()
    if isinstance(values, str):
        values = values.split(',')
    elif not isinstance(values, (list, tuple, set, frozenset)):
        return set()

    tokens = set()
    for value in values:
        if isinstance(value, (list, tuple, set, dict)):
            continue
        token = normalize_string(value)
        if token:
            tokens.add(token)
    return tokens


def to_numeric(value: Any) -> Optional[float]:
    """Coerce a number or numeric-looking string to float.

    Strips everything except digits, '.' and '-'. A string with nothing
    numeric left in it (e.g. "" or "negotiable") is 0. Returns None when the
    result is not a finite number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Number):
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        return number if math.isfinite(number) else None
    if not isinstance(value, str):
        return None

    cleaned = _NON_NUMERIC_RE.sub('', value)
    if not cleaned:
        return 0.0
    try:
        number = float(cleaned)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def get_field(source: Any, name: str, default: Any = None) -> Any:
    """Read `name` from a mapping or an object, tolerating anything."""
    if source is None:
        return default
    if isinstance(source, Mapping):
        return source.get(name, default)
    try:
        return getattr(source, name, default)
    except Exception:
        return default


def normalize_sector(value: Any) -> str:
    """Normalize a sector, treating the "null" sentinel as absent."""
    sector = normalize_string(value)
    return '' if sector == NULL_SENTINEL else sector


def location_tokens(location: Any) -> Set[str]:
    """Flatten a job location into comparable tokens.

    Structured locations contribute city, state, country and the literal
    token "remote" when flagged remote. A free-form string location is a
    single token.
    """
    if location is None:
        return set()
    if isinstance(location, str):
        token = normalize_string(location)
        return {token} if token else set()

    tokens = set()
    for key in ('city', 'state', 'country'):
        token = normalize_string(get_field(location, key))
        if token:
            tokens.add(token)
    if get_field(location, 'remote'):
        tokens.add('remote')
    return tokens


def has_email_application(application: Any) -> bool:
    """True when the job accepts applications by email.

    Either the method is literally "email" (any case) or the email field,
    with any mailto: prefix removed, looks like an address.
    """
    if application is None or isinstance(application, (str, bool, numbers.Number)):
        return False

    method = normalize_string(get_field(application, 'method'))
    email = get_field(application, 'email') or ''
    if not isinstance(email, str):
        email = str(email)
    clean_email = _MAILTO_RE.sub('', email.strip()).strip()

    return method == 'email' or (len(clean_email) > 0 and '@' in clean_email)


@dataclass
class NormalizedJob:
    """Token view of a job record, as consumed by the match engine."""
    primary_roles: Set[str] = field(default_factory=set)
    related_roles: Set[str] = field(default_factory=set)
    ai_roles: Set[str] = field(default_factory=set)
    required_skills: Set[str] = field(default_factory=set)
    ai_skills: Set[str] = field(default_factory=set)
    locations: Set[str] = field(default_factory=set)
    experience_level: str = ''
    salary_max: Optional[float] = None
    employment_type: str = ''
    sector: str = ''


@dataclass
class NormalizedProfile:
    """Token view of a user profile, as consumed by the match engine."""
    target_roles: Set[str] = field(default_factory=set)
    skills: Set[str] = field(default_factory=set)
    preferred_locations: Set[str] = field(default_factory=set)
    experience_level: str = ''
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    job_type: str = ''
    sector: str = ''


def normalize_job(job: Any) -> NormalizedJob:
    """Build the token view of a job. Missing or malformed fields are empty."""
    if job is None:
        return NormalizedJob()

    salary_range = get_field(job, 'salary_range')
    salary_max = None
    if salary_range is not None and not isinstance(salary_range, (str, numbers.Number)):
        salary_max = to_numeric(get_field(salary_range, 'max'))

    # role may itself be a comma-joined multi-role string
    return NormalizedJob(
        primary_roles=normalize_array_strings(get_field(job, 'role')),
        related_roles=normalize_array_strings(get_field(job, 'related_roles')),
        ai_roles=normalize_array_strings(get_field(job, 'ai_enhanced_roles')),
        required_skills=normalize_array_strings(get_field(job, 'skills_required')),
        ai_skills=normalize_array_strings(get_field(job, 'ai_enhanced_skills')),
        locations=location_tokens(get_field(job, 'location')),
        experience_level=normalize_string(get_field(job, 'experience_level')),
        salary_max=salary_max,
        employment_type=normalize_string(get_field(job, 'employment_type')),
        sector=normalize_sector(get_field(job, 'sector')),
    )


def normalize_profile(profile: Any) -> NormalizedProfile:
    """Build the token view of a user profile."""
    if profile is None:
        return NormalizedProfile()

    return NormalizedProfile(
        target_roles=normalize_array_strings(get_field(profile, 'target_roles')),
        skills=normalize_array_strings(get_field(profile, 'cv_skills')),
        preferred_locations=normalize_array_strings(get_field(profile, 'preferred_locations')),
        experience_level=normalize_string(get_field(profile, 'experience_level')),
        salary_min=to_numeric(get_field(profile, 'salary_min')),
        salary_max=to_numeric(get_field(profile, 'salary_max')),
        job_type=normalize_string(get_field(profile, 'job_type')),
        sector=normalize_sector(get_field(profile, 'sector')),
    )
