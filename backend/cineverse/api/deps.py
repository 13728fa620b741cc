from typing import Annotated

from fastapi import Depends

from cineverse.metadata.factory import get_default_resolver, new_deadline
from cineverse.metadata.resolver import Deadline, MovieResolver


def get_resolver() -> MovieResolver:
    return get_default_resolver()


def get_deadline() -> Deadline | None:
    return new_deadline()


ResolverDep = Annotated[MovieResolver, Depends(get_resolver)]
DeadlineDep = Annotated[Deadline | None, Depends(get_deadline)]
