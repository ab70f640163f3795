"""Web application: config, middleware and routers."""
