"""Pure domain layer: clock, DTOs and balance arithmetic."""
