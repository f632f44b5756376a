"""Adapters for the external collaborators: DynamoDB, SSM and Datadog."""
