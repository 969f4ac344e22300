"""
test_options
============

Tests the UserOptions base class and the mixin classes that apply options to the processing classes.
"""

from unittest import TestCase

from dataclasses import dataclass, field

import numpy as np

from solaraspect.utilities.options import UserOptions
from solaraspect.utilities.mixin_classes import UserOptionConfigured, AttributePrinting


@dataclass
class ExampleOptions(UserOptions):
    threshold: float = 0.5
    count: int = 3
    names: list = field(default_factory=lambda: ['a', 'b'])


class Example(UserOptionConfigured[ExampleOptions], ExampleOptions, AttributePrinting):
    def __init__(self, options: ExampleOptions | None = None):
        super().__init__(ExampleOptions, options=options)

        self._hidden = 'not printed'
        self._data = np.zeros((10, 10))

    @property
    def data(self):
        return self._data


class TestUserOptions(TestCase):
    def test_options_dict(self):
        self.assertEqual(ExampleOptions().options_dict, {'threshold': 0.5, 'count': 3, 'names': ['a', 'b']})

    def test_copy_with(self):
        options = ExampleOptions(count=7)
        copy = options.copy_with(threshold=0.1)

        self.assertEqual(copy.threshold, 0.1)
        self.assertEqual(copy.count, 7)
        self.assertEqual(options.threshold, 0.5)

    def test_apply_options(self):
        class Target:
            pass

        target = Target()
        ExampleOptions(count=11).apply_options(target)

        self.assertEqual(target.count, 11)
        self.assertEqual(target.threshold, 0.5)


class TestUserOptionConfigured(TestCase):
    def test_defaults(self):
        inst = Example()

        self.assertEqual(inst.threshold, 0.5)
        self.assertEqual(inst.count, 3)

    def test_options_applied(self):
        inst = Example(ExampleOptions(threshold=2.5))

        self.assertEqual(inst.threshold, 2.5)

    def test_reset_settings(self):
        options = ExampleOptions(count=4)
        inst = Example(options)

        inst.count = 100
        inst.names.append('c')
        options.count = 50

        inst.reset_settings()

        self.assertEqual(inst.count, 4)
        self.assertEqual(inst.original_options.count, 4)


class TestAttributePrinting(TestCase):
    def test_str(self):
        text = str(Example())

        self.assertTrue(text.startswith('Example('))
        self.assertIn('threshold=0.5', text)
        self.assertIn('data=<array shape=(10, 10) dtype=float64>', text)
        self.assertNotIn('hidden', text)

    def test_repr(self):
        text = repr(Example())

        self.assertIn("names=['a', 'b']", text)


if __name__ == '__main__':
    import unittest
    unittest.main()
