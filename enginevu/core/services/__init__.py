"""Install services — HTTP, archives, registration, self-test, pipeline."""
