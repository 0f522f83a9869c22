"""Backend for the sign alert service: matching engine, storage and API."""
