import unittest

from dashboard.services.page_window import ELLIPSIS, clamp_page, page_window, total_pages_for


class PageWindowTests(unittest.TestCase):
    def test_small_totals_show_every_page(self):
        self.assertEqual(page_window(1, 1), [1])
        self.assertEqual(page_window(3, 2), [1, 2, 3])

    def test_current_page_at_start(self):
        self.assertEqual(page_window(10, 1), [1, 2, ELLIPSIS, 10])

    def test_current_page_in_the_middle(self):
        self.assertEqual(page_window(10, 5), [1, ELLIPSIS, 4, 5, 6, ELLIPSIS, 10])

    def test_current_page_at_end(self):
        self.assertEqual(page_window(10, 10), [1, ELLIPSIS, 9, 10])

    def test_single_hidden_page_is_shown_instead_of_ellipsis(self):
        self.assertEqual(page_window(10, 4), [1, 2, 3, 4, 5, ELLIPSIS, 10])
        self.assertEqual(page_window(7, 4), [1, 2, 3, 4, 5, 6, 7])

    def test_out_of_range_input_is_clamped(self):
        self.assertEqual(page_window(0, 5), [1])
        self.assertEqual(page_window(10, 99), [1, ELLIPSIS, 9, 10])
        self.assertEqual(page_window(10, -3), [1, 2, ELLIPSIS, 10])

    def test_window_shape_holds_for_every_position(self):
        for total in range(1, 31):
            for current in range(1, total + 1):
                window = page_window(total, current)
                pages = [entry for entry in window if entry != ELLIPSIS]

                self.assertEqual(window[0], 1)
                self.assertEqual(window[-1], total)
                self.assertIn(current, pages)
                self.assertEqual(pages, sorted(set(pages)))
                for index, entry in enumerate(window):
                    if entry != ELLIPSIS:
                        continue
                    before, after = window[index - 1], window[index + 1]
                    self.assertNotEqual(after, ELLIPSIS)
                    self.assertGreaterEqual(after - before - 1, 2)


class PageMathTests(unittest.TestCase):
    def test_total_pages_is_at_least_one(self):
        self.assertEqual(total_pages_for(0, 10), 1)
        self.assertEqual(total_pages_for(10, 10), 1)
        self.assertEqual(total_pages_for(11, 10), 2)
        self.assertEqual(total_pages_for(25, 10), 3)

    def test_clamp_page(self):
        self.assertEqual(clamp_page(0, 3), 1)
        self.assertEqual(clamp_page(-7, 3), 1)
        self.assertEqual(clamp_page(2, 3), 2)
        self.assertEqual(clamp_page(9, 3), 3)
        self.assertEqual(clamp_page(4, 0), 1)


if __name__ == "__main__":
    unittest.main()
