"""Services: gh gateway, activity queries, summary generator, stores, stats."""
