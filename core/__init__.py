"""Domain-neutral building blocks shared by the services."""
