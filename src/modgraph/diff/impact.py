"""Fixed impact of each change type on maintainability, performance and testability."""

from .models import ChangeImpact, ChangeType

IMPACT_TABLE: dict[ChangeType, ChangeImpact] = {
    ChangeType.DEPENDENCY_ADDED: ChangeImpact(
        -1, 0, -1, "Each new dependency adds coupling and another thing to mock in tests"
    ),
    ChangeType.DEPENDENCY_REMOVED: ChangeImpact(
        1, 0, 1, "Fewer dependencies make the module easier to change and test"
    ),
    ChangeType.CIRCULAR_DEPENDENCY_INTRODUCED: ChangeImpact(
        -3, -1, -2, "Circular dependencies make code harder to understand, test, and maintain"
    ),
    ChangeType.CIRCULAR_DEPENDENCY_RESOLVED: ChangeImpact(
        3, 1, 2, "Removing circular dependencies improves code organization and testability"
    ),
    ChangeType.COUPLING_INCREASED: ChangeImpact(
        -2, -1, -2, "Higher coupling makes modules harder to change independently"
    ),
    ChangeType.COUPLING_DECREASED: ChangeImpact(
        2, 1, 2, "Lower coupling improves modularity and independent testing"
    ),
    ChangeType.LAYER_VIOLATION_INTRODUCED: ChangeImpact(
        -3, 0, -2, "Layer violations break separation of concerns"
    ),
    ChangeType.LAYER_VIOLATION_RESOLVED: ChangeImpact(
        3, 0, 2, "Restored layering keeps data access behind the service layer"
    ),
    ChangeType.EXTERNAL_DEPENDENCY_ADDED: ChangeImpact(
        -1, 0, -1, "New external dependencies increase bundle size and maintenance overhead"
    ),
    ChangeType.EXTERNAL_DEPENDENCY_REMOVED: ChangeImpact(
        1, 1, 0, "Removing external dependencies reduces bundle size and maintenance overhead"
    ),
    ChangeType.HOTSPOT_CREATED: ChangeImpact(
        -2, -1, -3, "Complexity hotspots concentrate change risk in a few modules"
    ),
    ChangeType.HOTSPOT_RESOLVED: ChangeImpact(
        2, 1, 3, "Splitting a hotspot spreads responsibilities across smaller modules"
    ),
}


def impact_for(change_type: ChangeType) -> ChangeImpact:
    return IMPACT_TABLE[change_type]
