"""HTTP blueprints for the storefront, booking API and admin panel."""
