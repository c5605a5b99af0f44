"""Outbound integrations: property data lookup and the Rooted partner API."""

from flipanalyzer.integrations.property_lookup import PropertyLookupClient
from flipanalyzer.integrations.rooted import RootedClient
