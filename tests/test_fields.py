import unittest
from pyarc import (ContractViolation, Runtime, StrongRef, UnownedRef, WeakRef,
                   strong, unowned, weak)


class Node:
    next = strong()
    prev = weak()
    owner = unowned()

    def __init__(self, name):
        self.name = name


class TestFields(unittest.TestCase):
    def setUp(self):
        self.rt = Runtime()

    def test_unset_field_reads_none(self):
        n = Node("a")
        self.assertIsNone(n.next)
        self.assertIsNone(n.prev)
        self.assertIsNone(n.owner)

    def test_strong_field_retains_copy(self):
        a = self.rt.new(Node("a"))
        b = self.rt.new(Node("b"))
        a.payload.next = b
        self.assertIsInstance(a.payload.next, StrongRef)
        self.assertIsNot(a.payload.next, b)
        self.assertEqual(b.block.strong_count, 2)

        b.drop()
        self.assertFalse(b.block.is_deallocated)
        self.assertEqual(a.payload.next.payload.name, "b")
        a.drop()
        self.assertTrue(b.block.is_deallocated)

    def test_reassign_releases_previous(self):
        a = self.rt.new(Node("a"))
        b = self.rt.new(Node("b"), label='b')
        c = self.rt.new(Node("c"), label='c')
        a.payload.next = b
        b.drop()
        a.payload.next = c
        self.assertTrue(b.block.is_deallocated)
        self.assertEqual(c.block.strong_count, 2)

        a.payload.next = None
        self.assertIsNone(a.payload.next)
        self.assertEqual(c.block.strong_count, 1)
        c.drop()
        a.drop()

    def test_delete_field_releases(self):
        a = self.rt.new(Node("a"))
        b = self.rt.new(Node("b"))
        a.payload.next = b
        del a.payload.next
        self.assertEqual(b.block.strong_count, 1)
        with self.assertRaises(AttributeError):
            del a.payload.next
        b.drop()
        a.drop()

    def test_weak_field(self):
        a = self.rt.new(Node("a"))
        b = self.rt.new(Node("b"))
        b.payload.prev = a
        self.assertIsInstance(b.payload.prev, WeakRef)
        self.assertEqual(a.block.strong_count, 1)
        self.assertEqual(a.block.weak_count, 1)

        a.drop()
        self.assertIsNone(b.payload.prev.resolve())
        b.drop()
        self.assertTrue(a.block.is_freed)

    def test_unowned_field(self):
        a = self.rt.new(Node("a"))
        b = self.rt.new(Node("b"))
        b.payload.owner = a
        self.assertIsInstance(b.payload.owner, UnownedRef)
        self.assertEqual(b.payload.owner.access().name, "a")
        a.drop()
        with self.assertRaises(ContractViolation):
            b.payload.owner.access()
        b.drop()

    def test_teardown_releases_fields(self):
        a = self.rt.new(Node("a"), label='a')
        b = self.rt.new(Node("b"), label='b')
        c = self.rt.new(Node("c"), label='c')
        a.payload.next = b
        b.payload.next = c
        c.payload.prev = b
        c.payload.owner = a
        b.drop()
        c.drop()

        a.drop()
        self.assertEqual(self.rt.events.labels('teardown'), ['a', 'b', 'c'])
        self.assertEqual(self.rt.blocks(), [])

    def test_class_access_returns_descriptor(self):
        self.assertIn("'next'", repr(Node.next))


class TestContainerPayloads(unittest.TestCase):
    def setUp(self):
        self.rt = Runtime()

    def test_dict_payload(self):
        child = self.rt.new(Node("child"), label='child')
        parent = self.rt.new({'child': child.copy(), 'name': 'parent'}, label='parent')
        child.drop()
        parent.drop()
        self.assertEqual(self.rt.events.labels('teardown'), ['parent', 'child'])

    def test_list_attribute(self):
        holder = Node("holder")
        kids = [self.rt.new(Node(str(i)), label=f"kid{i}") for i in range(3)]
        holder.kids = [k.copy() for k in kids]
        holder.lookup = {'first': WeakRef(kids[0])}
        parent = self.rt.new(holder, label='holder')
        for k in kids:
            k.drop()
        self.assertEqual(kids[0].block.weak_count, 1)

        parent.drop()
        self.assertEqual(self.rt.events.labels('teardown'),
                         ['holder', 'kid0', 'kid1', 'kid2'])
        self.assertEqual(self.rt.blocks(), [])


if __name__ == '__main__':
    unittest.main()
