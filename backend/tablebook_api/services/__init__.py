"""
Services module for business logic.

- domain/: application services (reservations, orders, venues, accounts, stats)
- events/: notification emitter and inboxes
- payments/: hosted checkout gateway client, circuit breaker, webhook handling
"""
