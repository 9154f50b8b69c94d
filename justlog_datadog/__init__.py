"""Parse JustLog log lines and ship them to the DataDog mobile log intake."""
