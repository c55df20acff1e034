"""Generate numbered demo messages and publish them to a Kafka topic."""
