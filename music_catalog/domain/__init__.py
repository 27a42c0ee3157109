"""Music catalog domain layer - pure business logic with no persistence dependencies."""
