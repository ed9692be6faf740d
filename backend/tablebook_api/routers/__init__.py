"""
HTTP routers, grouped by caller: public, auth, customer, payments, staff and admin.
"""
