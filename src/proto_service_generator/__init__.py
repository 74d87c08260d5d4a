"""Generate Java dispatcher and client classes for protobuf services."""
