"""
Top-level services package

Keep this file minimal; import subpackages directly to avoid large import graphs.

Structure:
- services.storage (data backends and the fallback gateway)
- services.auth (authentication, module permissions, demo data)
- services.jobs (job lifecycle and access rules)
- services.businesses (businesses and customers)
- services.catalog (products, AR models and the converter)
- services.messaging (email outbox, notifications)
- services.analytics (dashboards)
- services.monitoring (system health, activity log)
"""
