"""Order lifecycle service: create orders, pay them, aggregate revenue."""
