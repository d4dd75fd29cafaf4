"""
Authorization helpers.

A token source is any zero-argument callable returning an access token
string.  Tools declare two kinds of auth requirement:

- authn (per parameter): the parameter is filled from any one of its
  listed services instead of caller input
- authz (per tool): invoking the tool needs at least one of its listed
  services

The functions here reconcile those requirements against the token sources
a caller supplied and report what is still missing.
"""

from typing import Callable, Dict, Iterable, List, Mapping, Set, Tuple, Union

TokenSource = Callable[[], str]


def static_token(token: str) -> TokenSource:
    """Wrap a fixed token string as a token source."""
    def source() -> str:
        return token
    return source


def as_token_source(value: Union[str, TokenSource]) -> TokenSource:
    """Accept either a token string or a token source callable."""
    if isinstance(value, str):
        return static_token(value)
    if callable(value):
        return value
    raise TypeError(f"expected a token string or callable, got {type(value).__name__}")


def identify_auth_requirements(
    req_authn_params: Mapping[str, List[str]],
    req_authz_tokens: List[str],
    auth_token_sources: Iterable[str],
) -> Tuple[Dict[str, List[str]], List[str], Set[str]]:
    """
    Work out which auth requirements remain unmet.

    Args:
        req_authn_params: Parameter name -> alternative services, any of
                          which satisfies the parameter.
        req_authz_tokens: Services of which at least one must be present to
                          invoke the tool.
        auth_token_sources: Names of the services the caller can provide
                            (a mapping's keys work too).

    Returns:
        (unmet authn params, unmet authz services, services actually used).
        When no authz service is available the whole original list is
        returned, not only the missing subset.
    """
    provided = set(auth_token_sources)
    unmet_authn: Dict[str, List[str]] = {}
    used: Set[str] = set()

    for param, services in req_authn_params.items():
        matched = [s for s in services if s in provided]
        if matched:
            used.update(matched)
        else:
            unmet_authn[param] = list(services)

    unmet_authz: List[str] = []
    matched_authz = [s for s in req_authz_tokens if s in provided]
    if matched_authz:
        used.update(matched_authz)
    else:
        unmet_authz = list(req_authz_tokens)

    return unmet_authn, unmet_authz, used


def find_unused_keys(provided: Iterable[str], used: Iterable[str]) -> List[str]:
    """Return the provided keys that do not appear in ``used``, in order."""
    used_set = set(used)
    return [key for key in provided if key not in used_set]
