"""Issue types, single-page reporters and multipage SQL reporters."""