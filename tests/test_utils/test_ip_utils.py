"""Tests for IP utility functions."""

from meshnetcfg.utils.ip import is_dotted_quad, strip_prefix


class TestIsDottedQuad:
    def test_accepts(self):
        assert is_dotted_quad('10.55.10.94')
        assert is_dotted_quad('255.255.255.255')

    def test_rejects(self):
        for value in ('10.55.10.256', '10.55.10', 'abc.def.gha.b', '10.55.10.94/24',
                      '10.55.10.-1', '10.55.10.９', ''):
            assert not is_dotted_quad(value), value

    def test_strip_prefix(self):
        assert strip_prefix('10.55.10.94/32') == '10.55.10.94'
