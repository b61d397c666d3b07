"""Weather provider backed by the OpenWeather API."""
