"""Stock services shared by the API routers."""
