"""Shared fixtures for famforest tests."""

import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from models import Person  # noqa: E402


@pytest.fixture
def couple_with_children():
    """Dad and Mom, married, with two children listed youngest first."""
    return [
        Person(id="dad", name="Dad", gender="male", birth_date="1940-03-01", spouse_id="mom"),
        Person(id="mom", name="Mom", gender="female", birth_date="1942-07-12", spouse_id="dad"),
        Person(id="kid1", name="Younger", birth_date="1970-01-01", father_id="dad", mother_id="mom"),
        Person(id="kid2", name="Older", birth_date="1965-05-05", father_id="dad", mother_id="mom"),
    ]


@pytest.fixture
def separate_parents():
    """A child whose father and mother are unrelated roots."""
    return [
        Person(id="f", name="Frank", gender="male", birth_date="1950-01-01"),
        Person(id="m", name="Mary", gender="female", birth_date="1952-01-01"),
        Person(id="c", name="Chris", birth_date="1980-01-01", father_id="f", mother_id="m"),
    ]


@pytest.fixture
def messy_family():
    """Cycles, dangling references, self references, undated people and a shared grandparent."""
    return [
        Person(id="gp", name="Grandpa", birth_date="1900", spouse_id="gm"),
        Person(id="gm", name="Grandma", birth_date="not a date", spouse_id="gp"),
        Person(id="p1", name="Parent One", birth_date="1925-02-02", father_id="gp", mother_id="gm", spouse_id="s1"),
        Person(id="s1", name="Spouse One", birth_date="1927-01-01", spouse_id="p1"),
        Person(id="p2", name="Parent Two", birth_date="1930-01-01", father_id="gp", mother_id="other"),
        Person(id="other", name="Other Mother", birth_date="1905-01-01"),
        Person(id="c1", name="Cousin A", birth_date="1950-01-01", father_id="p1", mother_id="s1", spouse_id="c2"),
        Person(id="c2", name="Cousin B", birth_date="1952-01-01", father_id="p2", spouse_id="c1"),
        Person(id="loop1", name="Loop One", father_id="loop2"),
        Person(id="loop2", name="Loop Two", father_id="loop1"),
        Person(id="selfie", name="Selfie", father_id="selfie", mother_id="ghost"),
        Person(id="lonely", name="Lonely", spouse_id="nobody"),
    ]
