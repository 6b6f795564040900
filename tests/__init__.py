"""Tests for gitops-generator."""

COMPONENT = "test-component"
NAMESPACE = "test-namespace"
APPLICATION = "test-application"
IMAGE = "quay.io/test/test-image:latest"
