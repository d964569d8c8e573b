"""Service layer: business logic over the repositories."""
