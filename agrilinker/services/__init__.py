"""Business workflows behind the API blueprints."""
