from typing import Annotated

from pydantic import BaseModel, Field, NonNegativeInt, StrictInt, StringConstraints

NonEmptyString = Annotated[str, StringConstraints(min_length=1)]
RepoNameType = Annotated[str, StringConstraints(min_length=1, max_length=100)]
UserNameType = Annotated[str, StringConstraints(min_length=1, max_length=39)]
RepoFullNameType = Annotated[str, StringConstraints(min_length=1, max_length=140)]
LanguagesType = dict[str, NonNegativeInt]


class RepositoryRecord(BaseModel, frozen=True):
    """
    Model for a public repository and its language breakdown.

    Fields ``id`` and ``primary_language`` are internal and never serialized,
    see :class:`RepositoryView` for the public form.
    Field ``languages`` is empty until the enrichment step replaces the record
    with a copy holding the fetched histogram.
    """
    id: StrictInt = Field(exclude=True, gt=0)
    full_name: RepoFullNameType
    owner: UserNameType
    name: RepoNameType
    # None means the repository has no license
    license: str | None = None
    primary_language: str | None = Field(default=None, exclude=True)
    languages: LanguagesType = Field(default_factory=dict)


class RepositoryView(BaseModel, frozen=True, populate_by_name=True):
    """
    Model for a repository returned to API clients.
    """
    full_name: RepoFullNameType = Field(alias='fullName')
    owner: UserNameType
    name: RepoNameType = Field(alias='repository')
    license: str | None = None
    languages: LanguagesType

    @classmethod
    def from_record(cls, record: RepositoryRecord, /) -> 'RepositoryView':
        return cls(
            full_name=record.full_name,
            owner=record.owner,
            name=record.name,
            license=record.license,
            languages=record.languages,
            )


class LanguageResult(BaseModel, frozen=True):
    """
    Model for languages fetched for a single repository.
    """
    repository_id: int
    languages: LanguagesType


class SearchQuery(BaseModel, frozen=True):
    """
    Model for optional filters of the repository search.
    """
    owner: str = ''
    license: str = ''
    language: str = ''

    def to_query(self, /, *, public_only: bool = True) -> str:
        """
        Converts filters into GitHub search syntax.
        Empty filters are skipped.
        """
        parts = []
        if public_only:
            parts.append('is:public')

        for qualifier in ('owner', 'license', 'language'):
            value = getattr(self, qualifier).strip()
            if value:
                parts.append(f'{qualifier}:{value}')

        return ' '.join(parts).strip()


__all__ = (
    'NonEmptyString',
    'RepoNameType',
    'UserNameType',
    'RepoFullNameType',
    'LanguagesType',
    'RepositoryRecord',
    'RepositoryView',
    'LanguageResult',
    'SearchQuery',
    )
