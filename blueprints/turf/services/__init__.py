"""Turf services: payment gateway client and payment orchestration."""
