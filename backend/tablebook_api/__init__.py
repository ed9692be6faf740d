"""
TableBook REST API: reservations, orders and payments for restaurants.
"""
