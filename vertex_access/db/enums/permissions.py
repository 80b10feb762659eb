"""Role capability sets shared by the route guard and the row policies."""

from vertex_access.db.enums.auth import Role

# Roles that may enter the admin zone and change other subjects' roles
ROLES_SUPER_ADMIN = frozenset({Role.SUPER_ADMIN})

# Roles that count as staff (dashboard zone, all orders, portfolio writes)
ROLES_STAFF = frozenset({Role.SUPER_ADMIN, Role.SALES, Role.TEAM})

# Roles that may enter the client portal
ROLES_CLIENT_PORTAL = frozenset({Role.CLIENT})

# Roles that may place orders
ROLES_CAN_CREATE_ORDERS = frozenset({Role.CLIENT})
