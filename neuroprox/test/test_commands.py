####################################################################################################
# neuroprox/test/test_commands.py
# Tests for the neuroprox library's command-line interface.

import unittest, os, io, json, shutil, tempfile, contextlib, logging
import numpy as np

from neuroprox.commands           import commands
from neuroprox.commands.proximity import (load_matrix, radial_main, cylindrical_main)

class TestNeuroproxCommands(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.ret = os.path.join(self.tmpdir, 'retrieval.txt')
        with open(self.ret, 'w') as fl:
            fl.write('0, 0, 0\n1, 0, 0\n2, 0, 0\n15 0 0\n')
        self.srch = os.path.join(self.tmpdir, 'search.npy')
        np.save(self.srch, np.array([[0.0, 0, 0], [2, 0, 0]]))
        self.cyls = os.path.join(self.tmpdir, 'cylinders.txt')
        with open(self.cyls, 'w') as fl:
            fl.write('0 0 0 10 0 0\n')
        self.out = os.path.join(self.tmpdir, 'out.json')
    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def read_output(self):
        with open(self.out, 'r') as fl:
            return json.load(fl)

    def test_load_matrix(self):
        self.assertEqual(load_matrix(self.ret).shape, (4, 3))
        self.assertEqual(load_matrix(self.srch).shape, (2, 3))
        self.assertEqual(load_matrix(self.cyls).shape, (1, 6))

    def test_radial_command(self):
        logging.info('neuroprox: Testing the radial command...')
        self.assertIs(commands['radial'], radial_main)
        self.assertEqual(radial_main([self.ret, self.srch, '-r', '1', '-o', self.out, '-s']), 0)
        dat = self.read_output()
        self.assertTrue(dat['success'])
        self.assertEqual(dat['indices'], [[0], [2]])
        self.assertEqual(radial_main([self.ret, self.srch, '--radius=1.5', '--sets=2',
                                      '--threads=2', '--method=brute', '-so', self.out]), 0)
        self.assertEqual(self.read_output()['indices'], [[0, 1], [1, 2]])
        # without an output file the result is printed
        buf = io.StringIO()
        with contextlib.redirect_stdout(buf):
            self.assertEqual(radial_main([self.ret, self.srch, '-r1', '-s']), 0)
        self.assertEqual(json.loads(buf.getvalue())['indices'], [[0], [2]])
        # failures
        with contextlib.redirect_stdout(io.StringIO()):
            self.assertEqual(radial_main(['--help']), 1)
        with contextlib.redirect_stderr(io.StringIO()):
            self.assertEqual(radial_main([self.ret, self.srch]), 1)
            self.assertEqual(radial_main([self.ret, '-r', '1']), 1)
            self.assertEqual(radial_main([self.ret, self.srch, '-r', '-1']), 1)
            self.assertEqual(radial_main([self.ret, 'nofile.txt', '-r', '1']), 1)
            self.assertEqual(radial_main([self.ret, self.srch, '-r', '1', '-m', 'octree']), 1)
        with self.assertLogs(level='ERROR'):
            code = radial_main([self.ret, self.srch, '-r', '1', '-n', '2', '-p', '1', '-s',
                                '-o', self.out])
        self.assertEqual(code, 1)
        dat = self.read_output()
        self.assertFalse(dat['success'])
        self.assertEqual(dat['indices'], [[], []])

    def test_cylindrical_command(self):
        logging.info('neuroprox: Testing the cylindrical command...')
        self.assertIs(commands['cylindrical'], cylindrical_main)
        for extra in [[], ['-x'], ['--no-pre-exclusion', '--points=1']]:
            args = [self.ret, self.cyls, '-r', '1', '-s', '-o', self.out] + extra
            self.assertEqual(cylindrical_main(args), 0)
            dat = self.read_output()
            self.assertTrue(dat['success'])
            self.assertEqual(dat['indices'], [[0, 1, 2]])
            self.assertTrue(np.allclose(dat['axial_distances'][0], [0, 1, 2]))
            self.assertTrue(np.allclose(dat['radial_distances'][0], [0, 0, 0]))
