####################################################################################################
# commands/proximity.py
# The code for the commands that run radial and cylindrical proximity queries on files of points.

import os, sys, json, logging, pimms
import numpy as np

from ..geometry import (radial_proximate_points_split, cylindrical_proximate_points_split)

info = \
   '''
   Syntax: radial <retrieval> <search> -r <radius> [options]
           cylindrical <retrieval> <cylinders> -r <radius> [options]
   <retrieval> is a file of retrieval points, one (x, y, z) point per row.
   <search> is a file of search points, one (x, y, z) point per row, for the radial command.
   <cylinders> is a file of search cylinders, one (x0, y0, z0, x1, y1, z1) cylinder per row, for
     the cylindrical command; the two points are the start and end points of the cylinder axis.
   Input files may be numpy .npy files or text files whose values are separated by whitespace
   and/or commas. The result is written as a JSON object whose 'indices' entry lists, for every
   search point or cylinder (in input order), the 0-based indices of the retrieval points within
   the radius; the cylindrical command additionally writes the 'axial_distances' and
   'radial_distances' of each of these points.

   The following options may be given:
     * -r|--radius=<value>
       The search radius; this option is required.
     * -o|--output=<file>
       The file to which the JSON result is written; if omitted, the result is printed.
     * -n|--sets=<count>
       Split the search points or cylinders into the given number of sets.
     * -p|--points=<count>
       Split the search points or cylinders into sets of the given number of items. Only one of
       --sets and --points may be given.
     * -t|--threads=<count>
       The number of threads on which the sets are processed; by default the number of logical
       cores of the machine is used.
     * -s|--silent
       Suppresses informational messages.
     * -m|--method=<name>
       The method used by the radial command: kdtree (the default) or brute.
     * -x|--no-pre-exclusion
       Specifies that the cylindrical command should not filter the retrieval points by their
       distance from each cylinder's start point before testing them.
     * -h|--help
       Prints this message.
     * --
       This token, by itself, indicates that the arguments that remain should not
       be processed as flags or options, even if they begin with a -.
   '''
_proximity_parser_instructions = [
    # Flags
    ('h', 'help',             'help',             False),
    ('s', 'silent',           'silent',           False),
    ('x', 'no-pre-exclusion', 'no_pre_exclusion', False),
    # Options
    ['r', 'radius',           'radius',           None],
    ['o', 'output',           'output',           None],
    ['n', 'sets',             'num_sets',         0],
    ['p', 'points',           'num_points',       0],
    ['t', 'threads',          'threads',          None],
    ['m', 'method',           'method',           None]]
_proximity_parser = pimms.argv_parser(_proximity_parser_instructions)

def load_matrix(flnm):
    '''
    load_matrix(filename) yields the 2D matrix stored in the given .npy or text file; text files
      may separate their values by whitespace and/or commas.
    '''
    flnm = os.path.expanduser(os.path.expandvars(flnm))
    if flnm.endswith('.npy'): return np.atleast_2d(np.load(flnm))
    with open(flnm, 'r') as fl:
        lines = [ln.replace(',', ' ') for ln in fl]
    return np.loadtxt(lines, dtype=np.float64, ndmin=2)

def result_to_json(res):
    '''
    result_to_json(res) yields a JSON-serializable dict of the given RadialProximity or
      CylindricalProximity object.
    '''
    dat = {'success': res.success, 'indices': [u.tolist() for u in res.indices]}
    if hasattr(res, 'axial_distances'):
        dat['axial_distances'] = [u.tolist() for u in res.axial_distances]
        dat['radial_distances'] = [u.tolist() for u in res.radial_distances]
    return dat

def _run(kind, args):
    (args, opts) = _proximity_parser(args)
    if opts['help']:
        print(info, file=sys.stdout)
        return 1
    if len(args) != 2:
        print('Syntax: %s <retrieval> <search> -r <radius>; see --help' % kind, file=sys.stderr)
        return 1
    if opts['radius'] is None:
        print('A radius must be given with the -r or --radius option', file=sys.stderr)
        return 1
    # the split config is validated by the split run, which reports conflicts through success
    scfg = {'num_sets': opts['num_sets'], 'num_points': opts['num_points'],
            'threads': opts['threads'], 'silent': (True if opts['silent'] else None)}
    try:
        (ret, srch) = [load_matrix(flnm) for flnm in args]
        if kind == 'radial':
            res = radial_proximate_points_split(ret, srch, opts['radius'], scfg,
                                                method=opts['method'])
        else:
            res = cylindrical_proximate_points_split(
                ret, srch, opts['radius'], scfg,
                use_pre_exclusion=(False if opts['no_pre_exclusion'] else None))
    except (ValueError, OSError) as e:
        logging.error('neuroprox: %s', e)
        print('Error: %s' % e, file=sys.stderr)
        return 1
    dat = result_to_json(res)
    if opts['output'] is None:
        json.dump(dat, sys.stdout)
        sys.stdout.write('\n')
    else:
        with open(os.path.expanduser(opts['output']), 'w') as fl:
            json.dump(dat, fl)
    return 0 if res.success else 1

def radial_main(args):
    '''
    proximity.radial_main(args) can be given a list of arguments, such as sys.argv[1:]; these
    arguments must include a retrieval-points file, a search-points file, and a radius. The
    indices of the retrieval points within the radius of each search point are written out as
    JSON. For more information see the string stored in proximity.info.
    '''
    return _run('radial', args)

def cylindrical_main(args):
    '''
    proximity.cylindrical_main(args) is like proximity.radial_main(args) except that the second
    file contains search cylinders; see the string stored in proximity.info.
    '''
    return _run('cylindrical', args)
