import unittest

from preprocess_formula import preprocess_formula


class TestPreprocessFormula(unittest.TestCase):
    def test_empty_passthrough(self):
        self.assertEqual(preprocess_formula(""), "")

    def test_whitespace_and_subscripts(self):
        self.assertEqual(preprocess_formula(" H₂ O "), "H2O")

    def test_hydrate_dots(self):
        self.assertEqual(preprocess_formula("CuSO₄·5H₂O"), "CuSO4.5H2O")
        self.assertEqual(preprocess_formula("Na2CO3*10H2O"), "Na2CO3.10H2O")

    def test_brackets_left_for_the_grammar(self):
        self.assertEqual(preprocess_formula("[Cu(NH3)4]SO4"), "[Cu(NH3)4]SO4")
        self.assertEqual(preprocess_formula("(H2O]"), "(H2O]")

    def test_charge_left_alone(self):
        self.assertEqual(preprocess_formula("Fe <3e+>"), "Fe<3e+>")


if __name__ == '__main__':
    unittest.main()
