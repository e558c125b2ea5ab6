"""
Customer Profiles module.

Scope:
- Customers CRUD (list + search + create-with-address + detail/update/delete)
- Addresses CRUD, always owned by exactly one customer
- Paginated, filtered listing across customers and their addresses
"""
