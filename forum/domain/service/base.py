"""Base service class for domain services."""


class Service:
    """Base class for all domain services.

    Domain services hold logic that doesn't belong to a single entity,
    such as building and reshaping a whole reply forest.
    """

    pass
