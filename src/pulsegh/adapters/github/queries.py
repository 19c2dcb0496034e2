"""
GraphQL query builders for GitHub Projects (v2).

Each builder takes typed parameters and returns a GraphQLQuery value
object (document + variables + the path to the result node). The only
place that branches on owner kind is ``owner_scope``; every owner-scoped
document is rendered from it, so user and organization queries always
share the same selection set.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pulsegh.core.constants import DISCOVERY_PAGE_SIZE, FIELDS_PAGE_SIZE
from pulsegh.core.domain.entities import Owner
from pulsegh.core.domain.enums import OwnerKind


@dataclass(frozen=True)
class GraphQLQuery:
    """
    A ready-to-send GraphQL request.

    Attributes:
        name: Short name used in logs and error messages.
        document: The GraphQL document.
        variables: Variables for the document.
        path: Keys leading from ``data`` to the node of interest.
    """

    name: str
    document: str
    variables: Mapping[str, Any] = field(default_factory=dict)
    path: tuple[str, ...] = ()

    def payload(self) -> dict[str, Any]:
        """Request body for the GraphQL endpoint."""
        return {"query": self.document, "variables": dict(self.variables)}

    def extract(self, data: Mapping[str, Any] | None) -> Any:
        """Walk ``path`` through the response data; None if any step is missing."""
        node: Any = data
        for key in self.path:
            if not isinstance(node, Mapping):
                return None
            node = node.get(key)
        return node


def owner_scope(owner: Owner) -> str:
    """The root field that scopes a query to the owner."""
    if owner.kind is OwnerKind.ORGANIZATION:
        return "organization"
    if owner.kind is OwnerKind.USER:
        return "user"
    raise ValueError(f"Unsupported owner kind: {owner.kind!r}")


_FIELD_SELECTION = """
            ... on ProjectV2Field {
              id
              name
              dataType
            }
            ... on ProjectV2IterationField {
              id
              name
              dataType
              configuration {
                iterations {
                  id
                  title
                }
              }
            }
            ... on ProjectV2SingleSelectField {
              id
              name
              dataType
              options {
                id
                name
              }
            }"""

_ITEM_SELECTION = """
            id
            type
            isArchived
            content {
              __typename
              ... on Issue {
                number
                title
                url
                state
                repository { nameWithOwner }
              }
              ... on PullRequest {
                number
                title
                url
                state
                repository { nameWithOwner }
              }
              ... on DraftIssue {
                title
              }
            }
            fieldValues(first: 50) {
              nodes {
                ... on ProjectV2ItemFieldSingleSelectValue {
                  name
                  field { ... on ProjectV2FieldCommon { name } }
                }
                ... on ProjectV2ItemFieldTextValue {
                  text
                  field { ... on ProjectV2FieldCommon { name } }
                }
                ... on ProjectV2ItemFieldNumberValue {
                  number
                  field { ... on ProjectV2FieldCommon { name } }
                }
                ... on ProjectV2ItemFieldDateValue {
                  date
                  field { ... on ProjectV2FieldCommon { name } }
                }
                ... on ProjectV2ItemFieldIterationValue {
                  title
                  field { ... on ProjectV2FieldCommon { name } }
                }
              }
            }"""


def project_items_query(
    owner: Owner,
    project_number: int,
    page_size: int,
    cursor: str | None = None,
) -> GraphQLQuery:
    """One page of a project's items, starting after ``cursor``."""
    scope = owner_scope(owner)
    document = f"""
query($login: String!, $projectNumber: Int!, $first: Int!, $after: String) {{
  {scope}(login: $login) {{
    projectV2(number: $projectNumber) {{
      id
      title
      items(first: $first, after: $after) {{
        totalCount
        pageInfo {{
          hasNextPage
          endCursor
        }}
        nodes {{{_ITEM_SELECTION}
        }}
      }}
    }}
  }}
}}"""
    variables: dict[str, Any] = {
        "login": owner.login,
        "projectNumber": project_number,
        "first": page_size,
    }
    if cursor:
        variables["after"] = cursor
    return GraphQLQuery(
        name="project_items",
        document=document,
        variables=variables,
        path=(scope, "projectV2"),
    )


def project_fields_query(owner: Owner, project_number: int) -> GraphQLQuery:
    """A project's identity and full field schema."""
    scope = owner_scope(owner)
    document = f"""
query($login: String!, $projectNumber: Int!) {{
  {scope}(login: $login) {{
    projectV2(number: $projectNumber) {{
      id
      number
      title
      url
      closed
      fields(first: {FIELDS_PAGE_SIZE}) {{
        nodes {{{_FIELD_SELECTION}
        }}
      }}
    }}
  }}
}}"""
    return GraphQLQuery(
        name="project_fields",
        document=document,
        variables={"login": owner.login, "projectNumber": project_number},
        path=(scope, "projectV2"),
    )


def workspace_id_query(owner: Owner) -> GraphQLQuery:
    """The owner's node id."""
    scope = owner_scope(owner)
    document = f"""
query($login: String!) {{
  {scope}(login: $login) {{
    id
  }}
}}"""
    return GraphQLQuery(
        name="workspace_id",
        document=document,
        variables={"login": owner.login},
        path=(scope, "id"),
    )


def projects_discovery_query(
    owner: Owner,
    first: int = DISCOVERY_PAGE_SIZE,
    cursor: str | None = None,
) -> GraphQLQuery:
    """One page of the owner's projects, starting after ``cursor``."""
    scope = owner_scope(owner)
    document = f"""
query($login: String!, $first: Int!, $after: String) {{
  {scope}(login: $login) {{
    projectsV2(first: $first, after: $after) {{
      pageInfo {{
        hasNextPage
        endCursor
      }}
      nodes {{
        number
        id
        title
        url
        closed
      }}
    }}
  }}
}}"""
    variables: dict[str, Any] = {"login": owner.login, "first": first}
    if cursor:
        variables["after"] = cursor
    return GraphQLQuery(
        name="discover_projects",
        document=document,
        variables=variables,
        path=(scope, "projectsV2"),
    )
