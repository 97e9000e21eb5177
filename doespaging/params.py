from typing import Any, Mapping, Optional, Union

from starlette.datastructures import ImmutableMultiDict

ParamsType = Union[ImmutableMultiDict, Mapping[str, Any]]


def normalize_params(params: Optional[ParamsType]) -> ImmutableMultiDict:
    """Return request parameters as a multi-valued mapping.

    Starlette's ``QueryParams``/``FormData`` are already multi-valued and are
    returned unchanged. A plain mapping may hold a string or a list of
    strings per key.
    """
    if params is None:
        return ImmutableMultiDict()
    if isinstance(params, ImmutableMultiDict):
        return params

    items = []
    for key, value in params.items():
        if isinstance(value, (list, tuple)):
            items.extend((key, str(v)) for v in value)
        elif value is not None:
            items.append((key, str(value)))
    return ImmutableMultiDict(items)


def non_empty_values(params: ImmutableMultiDict, key: str) -> list[str]:
    """All values of ``key`` that are not blank."""
    return [value for value in params.getlist(key) if value != ""]
