from django.test import SimpleTestCase

from connect.errors import MAX_ID, ClientError, int_list, int_or_none, int_value


class IdParsingTests(SimpleTestCase):
    def assertRejected(self, parse, value, message_to_user):
        with self.assertRaises(ClientError) as ctx:
            parse(value)
        self.assertEqual(ctx.exception.status, 400)
        self.assertEqual(ctx.exception.message_to_user, message_to_user)

    def test_int_value(self):
        self.assertEqual(int_value(7), 7)
        self.assertEqual(int_value('42'), 42)
        self.assertEqual(int_value(3.0), 3)
        for value in ('abc', '', None, True, 2.5, float('nan'), [1], {'id': 1}, -1, MAX_ID + 1):
            self.assertRejected(int_value, value, "invalid id")

    def test_int_value_message(self):
        with self.assertRaises(ClientError) as ctx:
            int_value('x', "invalid user id")
        self.assertEqual(ctx.exception.message_to_user, "invalid user id")

    def test_int_or_none(self):
        for value in (None, '', 0):
            self.assertIsNone(int_or_none(value))
        self.assertEqual(int_or_none('5'), 5)
        self.assertRejected(int_or_none, 'five', "invalid id")

    def test_int_list(self):
        self.assertEqual(int_list([1, '2']), [1, 2])
        self.assertRejected(int_list, [1, 'x'], "invalid ids")
