"""routesim: stepwise shortest-path routing and packet forwarding simulator."""

__version__ = "0.1.0"
